"""gitpane: repository status, diff, staging and commits for git front-ends."""

__version__ = "0.1.0"
