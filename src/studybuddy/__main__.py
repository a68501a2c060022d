"""Entry point for 'python -m studybuddy' command.

This module allows the StudyBuddy CLI to be invoked using
'python -m studybuddy serve'.
"""

from studybuddy.cli import main

if __name__ == "__main__":
    main()
