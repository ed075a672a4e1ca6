"""repaso: spaced-repetition scheduling for bilingual flashcards."""

from repaso.consts import VERSION

__version__ = VERSION
