"""NeuroLex: spaced-repetition vocabulary trainer with AI quizzes."""

__version__ = "0.1.0"
