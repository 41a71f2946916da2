from enum import Enum

class WatchSortKey(str, Enum):
    """Orderings available for the grouped watch listing"""
    RECENTLY_WATCHED = "recentlyWatched"
    HIGHEST_RATED = "highestRated"
    TITLE_ASC = "titleAsc"
    MOST_WATCHED = "mostWatched"

class GroupOperation(str, Enum):
    """How a bulk visibility change combines with a watch's existing shares"""
    ADD = "add"
    REPLACE = "replace"

class EnumHelper:
    """Lenient parsing for enum values arriving on the wire"""

    @staticmethod
    def parse(enum_cls, value):
        """Return the member whose value matches, or None"""
        if value is None:
            return None
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(str(value).strip())
        except ValueError:
            return None
