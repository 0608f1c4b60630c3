"""rtk-stories: review and pick mnemonic stories for RTK kanji cards in Anki."""

from rtk_stories.consts import VERSION

__version__ = VERSION
