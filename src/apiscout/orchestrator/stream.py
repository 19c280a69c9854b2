from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from apiscout.domain.models import RouteRecord

logger = logging.getLogger(__name__)

Explainer = Callable[[RouteRecord], str]


def document_routes(routes: Iterable[RouteRecord], explain: Explainer) -> Iterator[RouteRecord]:
    """
    Hand each route to `explain` and yield it with the explanation attached as
    soon as that route is done. A failing explanation is reported in place and
    does not stop the stream.
    """
    for route in routes:
        try:
            explanation = explain(route)
        except Exception as exc:  # the explainer is an external collaborator
            logger.warning("Explanation failed for %s %s: %s", route.method, route.route_path, exc)
            explanation = f"Error generating explanation: {exc}"
        yield route.model_copy(update={"explanation": explanation})
