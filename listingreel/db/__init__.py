from listingreel.db.database import Base, engine, get_db, init_db, make_engine, SessionLocal
from listingreel.db.jobs import JobRecorder, claim_next, compare_and_set, create_video, reap_stale
from listingreel.db.models import GenerationMode, Video, VideoStage, VideoStatus

__all__ = [
    "Base",
    "engine",
    "get_db",
    "init_db",
    "make_engine",
    "SessionLocal",
    "JobRecorder",
    "claim_next",
    "compare_and_set",
    "create_video",
    "reap_stale",
    "GenerationMode",
    "Video",
    "VideoStage",
    "VideoStatus",
]
