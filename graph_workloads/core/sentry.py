from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from graph_workloads import config


def get_sentry_kwargs():
    """
    Returns Sentry configuration kwargs.

    The integration is created fresh each time to ensure proper initialization
    when sentry_sdk.init() is called. Creating the integration at module import
    time (before init) can prevent proper hooking into aiohttp's internals.
    """
    return {
        "dsn": config.SENTRY_DSN or None,
        "integrations": [AioHttpIntegration()],
        "environment": config.SERVER_NAME or "unknown",
        "traces_sample_rate": config.SENTRY_SAMPLE_RATE or 1.0,
        "profiles_sample_rate": config.SENTRY_SAMPLE_RATE or 1.0,
    }
