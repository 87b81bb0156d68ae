from .gateway import PlannerApi, PlannerApiError, UnauthorizedError
from .store import PlannerStore, PlannerPoller
