"""Journey planning: arc lookup and word budgets."""

from reverie.planning.arcs import CATEGORY_TITLES, ArcLibrary
from reverie.planning.budget import BudgetPlanner

__all__ = ["CATEGORY_TITLES", "ArcLibrary", "BudgetPlanner"]
