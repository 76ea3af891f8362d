"""
Verdica API Service.

Backend for a small social app where posts can be liked or accused.
Posts whose accusations catch up with their likes are put on trial:

- A random panel of judges is drawn from the other users
- Judges and the audience vote guilty / not guilty
- The tally of votes decides the verdict
"""

__version__ = "0.1.0"
