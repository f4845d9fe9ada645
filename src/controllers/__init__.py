"""Controllers package."""

from src.controllers.category import CategoryController
from src.controllers.currency import CurrencyController
from src.controllers.project import ProjectController

__all__ = ["CategoryController", "CurrencyController", "ProjectController"]
