import logging
import time

from fastapi import Request, Response

from caseflow.core.logger import request_log_context

logger = logging.getLogger("http_request_logger")


async def http_request_logger(request: Request, call_next) -> Response:
    token = request_log_context.set({})
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            f"[http_request_logger] Unhandled error | {request.method} {request.url.path}"
        )
        raise
    else:
        process_time = (time.time() - start_time) * 1000
        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} "
            f"[{process_time:.2f}ms] | client_ip={client_ip}"
        )
        return response
    finally:
        request_log_context.reset(token)
