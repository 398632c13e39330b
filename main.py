import argparse
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from config.settings import settings
from core.notifier import BeepNotifier
from core.registry import subscriber_registry
from core.scheduler import scheduler_service
from core.snapshot_store import snapshot_store
from services.berlin_service import BerlinService
from services.poller import AvailabilityPoller
from api.routes import appointments, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    settings.validate()

    appointments_url = BerlinService.get_appointments_url(settings.SERVICE_PAGE_URL)
    logger.info(f"Watching {settings.SERVICE_PAGE_URL} via {appointments_url}")

    poller = AvailabilityPoller(
        store=snapshot_store,
        registry=subscriber_registry,
        service_page_url=settings.SERVICE_PAGE_URL,
        email=settings.CONTACT_EMAIL,
        script_id=settings.SCRIPT_ID,
        quiet=settings.QUIET,
        notifier=BeepNotifier()
    )

    # Start background scheduler, the first poll runs right away
    scheduler_service.start(poller)

    logger.info(f"{settings.APP_NAME} startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    scheduler_service.shutdown()
    await BerlinService.close_client()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Include routers
app.include_router(health.router)
app.include_router(appointments.router)


def ask_question(question: str, instructions: str = "") -> str:
    print(f"\033[1m{question}\033[0m")
    if instructions:
        print(instructions)
    return input("> ").strip()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch service.berlin.de for free appointments")
    parser.add_argument("-i", dest="script_id", default=None,
                        help="A unique ID for your script. Used by the Berlin.de team to identify requests from you.")
    parser.add_argument("-e", dest="email", default=None,
                        help="Your email address. Required by the Berlin.de team.")
    parser.add_argument("-u", dest="url", default=None,
                        help='URL to the service page on Berlin.de. For example, '
                             '"https://service.berlin.de/dienstleistung/120686/"')
    parser.add_argument("-q", dest="quiet", action="store_true", default=None,
                        help="Limit output to essential logging.")
    parser.add_argument("-p", dest="port", type=int, default=None, help="Port to use.")
    return parser.parse_args(argv)


if __name__ == "__main__":
    import uvicorn

    args = parse_args()
    settings.apply_overrides(
        SCRIPT_ID=args.script_id,
        CONTACT_EMAIL=args.email,
        SERVICE_PAGE_URL=args.url,
        QUIET=args.quiet,
        PORT=args.port,
    )

    if not settings.SERVICE_PAGE_URL:
        settings.SERVICE_PAGE_URL = ask_question(
            "What is the URL of the service you want to watch?",
            'This is the service.berlin.de page for the service you want an appointment for. '
            'For example, "https://service.berlin.de/dienstleistung/120686/"',
        )

    if not settings.CONTACT_EMAIL:
        settings.CONTACT_EMAIL = ask_question(
            "What is your email address?",
            "It will be included in the requests this script makes. "
            "It's required by the Berlin.de appointments team.",
        )

    if settings.QUIET:
        logging.getLogger().setLevel(logging.WARNING)

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
