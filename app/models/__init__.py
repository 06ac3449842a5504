from app.models.user import Profile
from app.models.garden import Garden, GardenUser, GardenBed
from app.models.seed import Seed
from app.models.schedule import Planting, Task
from app.models.logs import EmailLog

__all__ = [
    "Profile",
    "Garden",
    "GardenUser",
    "GardenBed",
    "Seed",
    "Planting",
    "Task",
    "EmailLog",
]
