from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .crud.service import CrudService
from .database.connection import DatabaseConnection, MongoConfig
from .database.mongo_store import MongoDocumentStore
from .database.store import DocumentStore
from .devices.service import DeviceService
from .reports.service import ReportService
from .schools.access import SchoolAccessService
from .schools.service import FollowupService, MentorService, SchoolAssignmentService, SchoolService
from .teachers.service import TeacherService
from .trainings.service import TaskService, TrainingService
from .uploads.service import BulkUploadService
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    store: DocumentStore

    access_service: SchoolAccessService
    device_service: DeviceService
    auth_service: AuthService
    user_service: UserService
    crud_service: CrudService
    school_service: SchoolService
    school_assignment_service: SchoolAssignmentService
    followup_service: FollowupService
    mentor_service: MentorService
    teacher_service: TeacherService
    training_service: TrainingService
    task_service: TaskService
    report_service: ReportService
    upload_service: BulkUploadService


def build_container(*, mongo_config: Optional[dict] = None, store: Optional[DocumentStore] = None) -> Container:
    """Wire services together.

    Pass `store` to run on another DocumentStore (tests use an in-memory one);
    otherwise a MongoDB connection is opened lazily from `mongo_config`.
    """
    conn = None
    if store is None:
        if not mongo_config:
            raise ValueError("mongo_config is required when no store is given")
        config = MongoConfig(uri=str(mongo_config["uri"]), database=str(mongo_config["database"]))
        conn = DatabaseConnection.get_instance(config)
        store = MongoDocumentStore(conn)

    access_service = SchoolAccessService(store)
    device_service = DeviceService(store)

    return Container(
        conn=conn,
        store=store,
        access_service=access_service,
        device_service=device_service,
        auth_service=AuthService(store, device_service),
        user_service=UserService(store),
        crud_service=CrudService(store),
        school_service=SchoolService(store, access_service),
        school_assignment_service=SchoolAssignmentService(store),
        followup_service=FollowupService(store, access_service),
        mentor_service=MentorService(store),
        teacher_service=TeacherService(store, access_service),
        training_service=TrainingService(store, access_service),
        task_service=TaskService(store),
        report_service=ReportService(store, access_service),
        upload_service=BulkUploadService(store),
    )
