"""
Natours Backend — Parameter Pollution Stage
=============================================

What:  Collapses repeated query parameters to their first value.
How:   ?sort=price&sort=-duration → sort == "price". Keys on the allow-list
       keep every value in order: ?price=10&price=20 → price == ["10", "20"].
       The collapsed originals are kept in ctx.annotations["polluted_query"]
       for handlers that want to inspect them.
"""

from typing import AbstractSet, Dict, List

from natours.middleware.base import Continue, Outcome, Stage
from natours.middleware.context import QueryValue, RequestContext


def deduplicate(query: Dict[str, QueryValue], whitelist: AbstractSet[str]) -> Dict[str, QueryValue]:
    result: Dict[str, QueryValue] = {}
    for key, value in query.items():
        if isinstance(value, list) and key not in whitelist:
            result[key] = value[0] if value else ""
        else:
            result[key] = value
    return result


class ParameterPollutionStage(Stage):
    def __init__(self, whitelist: AbstractSet[str] = frozenset()):
        self.whitelist = frozenset(whitelist)

    async def process(self, ctx: RequestContext) -> Outcome:
        polluted: Dict[str, List[str]] = {
            key: list(value)
            for key, value in ctx.query.items()
            if isinstance(value, list) and key not in self.whitelist
        }
        if polluted:
            ctx.annotations["polluted_query"] = polluted
        ctx.query = deduplicate(ctx.query, self.whitelist)
        return Continue(ctx)
