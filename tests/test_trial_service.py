"""Tests for opening trials and drawing judge panels."""

import random

import pytest
from sqlalchemy.exc import OperationalError

from verdica.errors import PersistenceError
from verdica.models import TrialStatus
from verdica.trial_service import TrialService, is_trial_eligible

from conftest import make_post


@pytest.fixture
def users(store):
    return [store.create_user(f"user{i}") for i in range(1, 6)]


class TestEligibility:
    def test_fresh_post_is_eligible(self, store, users):
        # 0 accusations >= 0 likes: every new post qualifies on the first run
        post = make_post(store, users[0].id)
        assert post.likes == 0 and post.accusations == 0
        assert is_trial_eligible(post)

    def test_more_likes_than_accusations_is_not_eligible(self, store, users):
        post = make_post(store, users[0].id, likes=3, accusations=2)
        assert not is_trial_eligible(post)

    def test_accusations_equal_to_likes_is_eligible(self, store, users):
        post = make_post(store, users[0].id, likes=2, accusations=2)
        assert is_trial_eligible(post)


class TestEvaluateAndCreateTrials:
    def test_creates_trial_for_eligible_post(self, store, trial_service, users):
        post = make_post(store, users[0].id, likes=1, accusations=4)

        result = trial_service.evaluate_and_create_trials()

        assert result.created == 1
        trial = result.trials[0]
        assert trial.post_id == post.id
        assert trial.accused_id == users[0].id
        assert trial.status == TrialStatus.OPEN.value

    def test_skips_posts_with_more_likes(self, store, trial_service, users):
        make_post(store, users[0].id, likes=5, accusations=1)

        result = trial_service.evaluate_and_create_trials()

        assert result.created == 0
        assert store.list_trials() == []

    def test_rerun_is_idempotent(self, store, trial_service, users):
        make_post(store, users[0].id, likes=1, accusations=1)
        make_post(store, users[1].id, likes=0, accusations=2)

        first = trial_service.evaluate_and_create_trials()
        second = trial_service.evaluate_and_create_trials()

        assert first.created == 2
        assert second.created == 0
        assert len(store.list_trials()) == 2

    def test_post_becoming_eligible_later_gets_trial(self, store, trial_service, users):
        post = make_post(store, users[0].id, likes=2, accusations=1)
        assert trial_service.evaluate_and_create_trials().created == 0

        store.increment_post_counter(post.id, "accusations")
        result = trial_service.evaluate_and_create_trials()

        assert result.created == 1
        assert result.trials[0].post_id == post.id

    def test_lost_race_on_insert_is_skipped(self, store, trial_service, users, monkeypatch):
        make_post(store, users[0].id, likes=0, accusations=1)
        assert trial_service.evaluate_and_create_trials().created == 1

        # Pretend the existence check missed the trial another run created
        monkeypatch.setattr(store, "find_trial_for_post", lambda post_id: None)
        result = trial_service.evaluate_and_create_trials()

        assert result.created == 0
        assert len(store.list_trials()) == 1

    def test_failure_keeps_trials_created_earlier(self, store, trial_service, users, monkeypatch):
        make_post(store, users[0].id, likes=0, accusations=1)
        make_post(store, users[1].id, likes=0, accusations=1)

        real_add_judges = store.add_judges
        calls = []

        def flaky_add_judges(trial_id, user_ids):
            calls.append(trial_id)
            if len(calls) > 1:
                raise PersistenceError("connection lost")
            return real_add_judges(trial_id, user_ids)

        monkeypatch.setattr(store, "add_judges", flaky_add_judges)

        with pytest.raises(PersistenceError, match="connection lost"):
            trial_service.evaluate_and_create_trials()

        trials = store.list_trials()
        assert len(trials) == 2
        assert len(store.list_judges(calls[0])) == 3
        assert store.list_judges(calls[1]) == []

    def test_database_failure_mid_run_is_persistence_error(self, db, store, trial_service,
                                                          users, monkeypatch):
        make_post(store, users[0].id, likes=0, accusations=1)
        make_post(store, users[1].id, likes=0, accusations=1)

        real_add_judges = store.add_judges

        def add_judges_then_lose_connection(trial_id, user_ids):
            judges = real_add_judges(trial_id, user_ids)
            monkeypatch.setattr(db, "execute", _connection_lost)
            return judges

        monkeypatch.setattr(store, "add_judges", add_judges_then_lose_connection)

        with pytest.raises(PersistenceError, match="connection lost"):
            trial_service.evaluate_and_create_trials()


def _connection_lost(*args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("connection lost"))


class TestJudgeSelection:
    def test_panel_has_three_distinct_judges_excluding_accused(self, store, trial_service, users):
        make_post(store, users[0].id, likes=0, accusations=1)

        trial = trial_service.evaluate_and_create_trials().trials[0]
        judge_ids = [j.user_id for j in trial_service.get_judges(trial.id)]

        assert len(judge_ids) == 3
        assert len(set(judge_ids)) == 3
        assert users[0].id not in judge_ids
        assert set(judge_ids) <= {u.id for u in users[1:]}

    @pytest.mark.parametrize("seed", range(20))
    def test_accused_never_selected(self, store, users, seed):
        service = TrialService(store, rng=random.Random(seed), panel_size=3)
        for accused in users:
            selected = service.select_judges(accused.id)
            assert accused.id not in selected
            assert len(selected) == len(set(selected)) == 3

    def test_small_pool_uses_everyone_available(self, store):
        accused = store.create_user("accused")
        other = store.create_user("other")
        service = TrialService(store, rng=random.Random(0), panel_size=3)

        assert service.select_judges(accused.id) == [other.id]

    def test_empty_pool_creates_trial_without_judges(self, store):
        accused = store.create_user("loner")
        make_post(store, accused.id)
        service = TrialService(store, rng=random.Random(0), panel_size=3)

        result = service.evaluate_and_create_trials()

        assert result.created == 1
        assert service.get_judges(result.trials[0].id) == []

    def test_seeded_rng_is_reproducible(self, store, users):
        first = TrialService(store, rng=random.Random(42)).select_judges(users[0].id)
        second = TrialService(store, rng=random.Random(42)).select_judges(users[0].id)
        assert first == second

    def test_panel_size_is_configurable(self, store, users):
        service = TrialService(store, rng=random.Random(3), panel_size=2)
        assert len(service.select_judges(users[0].id)) == 2

    def test_default_rng_is_system_random(self, store):
        assert isinstance(TrialService(store).rng, random.SystemRandom)


def test_list_trials_newest_first(store, trial_service, users):
    make_post(store, users[0].id, accusations=1)
    make_post(store, users[1].id, accusations=1)
    created = trial_service.evaluate_and_create_trials().trials

    listed = trial_service.list_trials()

    assert [t.id for t in listed] == sorted((t.id for t in created), reverse=True)
