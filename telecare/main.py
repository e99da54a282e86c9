import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from telecare.core import config
from telecare.database import Base, engine, ensure_appointment_schema
from telecare.models import appointment, consultation, doctor, notification, patient, user  # noqa: F401
from telecare.notifications.dispatcher import shutdown_dispatcher
from telecare.routes import appointment_routes, consultation_routes

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

app = FastAPI(title='Telecare Scheduling API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('shutdown')
def stop_notifications() -> None:
    shutdown_dispatcher()


@app.get('/')
def root():
    return {'status': 'Telecare Scheduling API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(consultation_routes.router, prefix='/consultations')
