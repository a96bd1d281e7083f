from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnpath.api.admin import router as admin_router
from learnpath.api.auth import router as auth_router
from learnpath.api.dashboard import router as dashboard_router
from learnpath.api.health import router as health_router
from learnpath.api.lessons import router as lessons_router
from learnpath.api.onboarding import router as onboarding_router
from learnpath.api.profile import router as profile_router
from learnpath.api.roadmap import router as roadmap_router
from learnpath.core.bootstrap import initialize_database
from learnpath.core.errors import install_error_handling
from learnpath.core.logging import configure_logging
from learnpath.core.settings import settings
from learnpath.memory.database import engine


configure_logging(settings.log_level)

app = FastAPI(title="Learnpath API", version="0.1.0")
for router in (
    health_router,
    auth_router,
    onboarding_router,
    roadmap_router,
    lessons_router,
    dashboard_router,
    profile_router,
    admin_router,
):
    app.include_router(router)
install_error_handling(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    await initialize_database(engine)


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()
