from aiohttp import web

from graph_workloads import config


@web.middleware
async def cors_middleware(request, handler):
    """
    Middleware to handle CORS and the mandatory OPTIONS preflight.
    """
    if request.method == "OPTIONS":
        response = web.Response(status=204)
    else:
        response = await handler(request)

    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = ", ".join(config.CORS_ALLOW_METHODS)
    response.headers["Access-Control-Allow-Headers"] = (
        "Content-Type, Authorization, If-Match, X-Requested-With"
    )
    response.headers["Access-Control-Expose-Headers"] = "*"

    return response
