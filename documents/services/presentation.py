"""Display hints derived from the size of a result set.

Pure functions of the total row count. Both step functions are
monotonic: a larger total never yields a smaller page or a less dense
view.
"""

import enum

# (upper bound inclusive, page size); anything above the last bound gets
# LARGEST_PAGE_SIZE.
PAGE_SIZE_STEPS = (
    (200, 12),
    (1000, 15),
    (5000, 25),
    (10000, 50),
)
LARGEST_PAGE_SIZE = 100


class Density(str, enum.Enum):
    """How much detail each file gets on screen, least dense first."""

    CARDS = "cards"
    COMPACT = "compact"
    TABLE = "table"

    @property
    def rank(self):
        return list(Density).index(self)

    @classmethod
    def parse(cls, value):
        """Return the Density for ``value`` ignoring case, or None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


def optimal_page_size(total):
    for upper_bound, page_size in PAGE_SIZE_STEPS:
        if total <= upper_bound:
            return page_size
    return LARGEST_PAGE_SIZE


def recommended_density(total):
    if total <= 1000:
        return Density.CARDS
    if total <= 5000:
        return Density.COMPACT
    return Density.TABLE


def should_auto_switch(total, current_density):
    """True when ``current_density`` is less dense than recommended.

    An unknown current density never triggers a switch.
    """
    current = Density.parse(current_density)
    if current is None:
        return False
    return current.rank < recommended_density(total).rank


def performance_warning(total, current_density):
    """Warning for card view over large sets, or None."""
    if Density.parse(current_density) is not Density.CARDS:
        return None
    if total > 10000:
        return (
            "With more than 10,000 files the card view can be slow. "
            "Use the table view for better performance."
        )
    if total > 5000:
        return "With more than 5,000 files, consider the compact or table view."
    return None


def optimization_tips(total):
    tips = []
    if total > 1000:
        tips.append("Use filters to narrow down the number of results.")
    if total > 5000:
        tips.append("Keyword search is faster than browsing page by page.")
        tips.append("Organise files by department for quicker access.")
    if total > 10000:
        tips.append("Consider archiving old files to keep listings fast.")
        tips.append("Use the table view to scan large volumes quickly.")
    return tips


def presentation_hints(total, current_density=None):
    """Bundle of every hint, as returned alongside a file listing."""
    recommended = recommended_density(total)
    return {
        "optimalPageSize": optimal_page_size(total),
        "recommendedView": recommended.value,
        "shouldAutoSwitch": should_auto_switch(total, current_density),
        "performanceWarning": performance_warning(total, current_density),
        "optimizationTips": optimization_tips(total),
    }
