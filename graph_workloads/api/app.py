"""
Main API application factory.

This module creates the aiohttp application with all routes and middleware.
"""

import logging
import os
from datetime import datetime, timezone

import sentry_sdk
from aiohttp import ClientSession, web

from graph_workloads import config
from graph_workloads.core.cors import cors_middleware
from graph_workloads.core.exceptions import classified_error_middleware
from graph_workloads.core.health import check_health
from graph_workloads.core.sentry import get_sentry_kwargs
from graph_workloads.core.version import get_app_version

from .routes.workloads import routes as workload_routes

sentry_sdk.init(**get_sentry_kwargs())


async def app_factory():
    """Create and configure the aiohttp application."""

    async def on_startup(app):
        app["csession"] = ClientSession()
        app["start_time"] = datetime.now(timezone.utc)
        app["app_version"] = await get_app_version()

    async def on_cleanup(app):
        await app["csession"].close()

    app = web.Application(middlewares=[cors_middleware, classified_error_middleware])

    app.router.add_get("/health/", check_health)
    app.add_routes(workload_routes)

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    return app


def run():
    """Run the application."""
    logging.basicConfig(level=config.LOG_LEVEL)
    web.run_app(app_factory(), path=os.environ.get("WORKLOADS_APP_SOCKET_PATH"))


if __name__ == "__main__":
    run()
