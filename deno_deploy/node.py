# item-level execute path for the Deno Deploy action node.

# Each input item carries its own parameters (resource, operation, ids, ...).
# Items are processed strictly in order; output items record which input
# produced them via pairedItem so the host can trace lineage.
#
# Failure policy:
#   continue_on_fail=False → the first error stops the run and propagates
#   continue_on_fail=True  → any failing item yields {"error": message} and the run goes on

import logging
from typing import Any, Mapping

from deno_deploy.errors import DenoDeployError
from deno_deploy.http_client import DenoDeployClient
from deno_deploy.operations import OperationContext, parse_operation
from deno_deploy.retry import retrying

log = logging.getLogger(__name__)


def to_items(response: Any, item_index: int) -> list[dict[str, Any]]:
    """One output item per element of a list response, one for anything else."""
    elements = response if isinstance(response, list) else [response]
    items: list[dict[str, Any]] = []
    for element in elements:
        payload = element if isinstance(element, dict) else {"value": element}
        items.append({"json": payload, "pairedItem": {"item": item_index}})
    return items


class DenoDeployNode:

    def __init__(self, client: DenoDeployClient, **retry_kwargs: Any) -> None:
        self._client = client
        self._request = retrying(client.request, **retry_kwargs)

    async def execute(
        self,
        items: list[Mapping[str, Any]],
        continue_on_fail: bool = False,
    ) -> list[dict[str, Any]]:
        ctx = OperationContext(request=self._request, organization_id=self._client.organization_id)
        output: list[dict[str, Any]] = []

        for index, params in enumerate(items):
            try:
                operation = parse_operation(params)
                log.info(
                    "Item %d: %s.%s",
                    index, operation.resource, operation.operation,
                )
                response = await operation.run(ctx)
                output.extend(to_items(response, index))

            except Exception as exc:
                if not continue_on_fail:
                    raise
                message = exc.message if isinstance(exc, DenoDeployError) else str(exc)
                log.warning("Item %d failed, continuing: %s", index, message)
                output.append({"json": {"error": message}, "pairedItem": {"item": index}})

        return output
