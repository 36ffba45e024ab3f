"""
review_exec.py
--------------
Implements UpdateReviewsExecutor, the scheduled task that asks a Pretty Reviews
module endpoint to refresh its stored reviews.
"""
import json
from urllib.parse import quote_plus

from .base import BaseExecutor, ExecutionResult, TaskInvocationContext, TaskStatus
from ..store import SQLModuleStore
from ..transport import RequestsTransport

TASK_NAME = "prettyreviews.update_reviews"
MODULE_KIND = "mod_prettyreviews"
REQUIRED_PARAMS = ("cid", "apikey", "reviewsort", "secret")
ENDPOINT_PATH = "index.php?option=com_ajax&module=prettyreviews&method=updateGoogleReviews&format=json"


def build_update_url(root_url, module_id, cid, api_key, review_sort, secret):
    if not root_url.endswith("/"):
        root_url += "/"
    query = [
        ("moduleId", module_id),
        ("cid", cid),
        ("apiKey", api_key),
        ("reviewSort", review_sort),
        ("secret", secret),
    ]
    return root_url + ENDPOINT_PATH + "".join(f"&{name}={quote_plus(str(value))}" for name, value in query)


class UpdateReviewsExecutor(BaseExecutor):
    name = "update_reviews"

    def __init__(self, store=None, transport=None):
        super().__init__()
        self.store = store if store is not None else SQLModuleStore()
        self.transport = transport if transport is not None else RequestsTransport()

    def run(self, context: TaskInvocationContext) -> ExecutionResult:
        module_id = context.module_id
        result = ExecutionResult(logger=self.log.bind(task=TASK_NAME, module_id=module_id))

        if not module_id:
            result.error("Module is not Pretty Reviews. No module id given.")
            return result.finish(TaskStatus.NO_RUN)

        try:
            module = self.store.load(module_id)
        except Exception as e:
            result.error(f"Could not load module {module_id}: {e}")
            return result.finish(TaskStatus.KNOCKOUT)

        if module is None or module.kind != MODULE_KIND:
            result.error(f"Module is not Pretty Reviews. (moduleId {module_id})")
            return result.finish(TaskStatus.NO_RUN)

        values = [module.params.get(key) for key in REQUIRED_PARAMS]
        if not all(values):
            missing = [key for key, value in zip(REQUIRED_PARAMS, values) if not value]
            result.error(f"Missing required parameters in Pretty Reviews module: {', '.join(missing)}")
            return result.finish(TaskStatus.KNOCKOUT)

        result.info(f"Fetching reviews for moduleId {module_id}")
        url = build_update_url(context.root_url, module_id, *values)

        try:
            resp = self.transport.get(url, timeout=context.timeout)
        except Exception as e:
            # TransportError, or whatever an injected transport raises
            result.error(f"Error: {e}")
            return result.finish(TaskStatus.KNOCKOUT)

        try:
            payload = json.loads(resp.body)
        except (TypeError, ValueError) as e:
            result.error(f"Error: response from review endpoint is not valid JSON ({e})")
            return result.finish(TaskStatus.KNOCKOUT)

        if isinstance(payload, dict) and payload.get("data") is True:
            result.info("Success: Reviews have been updated!")
        else:
            result.error("Error: Something went wrong with the update request! Unexpected response.")
            return result.finish(TaskStatus.KNOCKOUT)

        result.info(f"Completed updating reviews for moduleId {module_id}")
        return result.finish(TaskStatus.OK)
