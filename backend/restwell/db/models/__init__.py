"""ORM models exposed for metadata discovery."""
from restwell.db.models.engine_run import EngineRun
from restwell.db.models.evening_plan import EveningPlan
from restwell.db.models.ritual import Ritual
from restwell.db.models.sleep_checkin import DailySleepCheckin
from restwell.db.models.timeline import Timeline
from restwell.db.models.user import User
from restwell.db.models.user_profile import UserProfile

__all__ = [
    "DailySleepCheckin",
    "EngineRun",
    "EveningPlan",
    "Ritual",
    "Timeline",
    "User",
    "UserProfile",
]
