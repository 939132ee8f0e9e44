from __future__ import annotations

from typing import Any

from metaops.actions import ActionSignalClassifier, CreativeClassifier
from metaops.aggregate import by_entity, by_label
from metaops.ranking import rank_by, top_n
from metaops.result import AnalysisResult
from metaops.schemas import DateRange
from metaops.tools.common import ToolContext, account_id_or_raise, fetch_insights, id_filter


PREVIEW_FIELDS = "creative{id,name,object_type,thumbnail_url}"

TEST_SUGGESTIONS = [
    "Test new variants of the top performer format",
    "Rotate out creatives with low CTR and high CPA",
]


async def analyze_creative_effectiveness(
    ctx: ToolContext,
    *,
    date_range: DateRange,
    ad_account_id: str | None = None,
    ad_ids: list[str] | None = None,
    include_preview: bool = False,
    classifier: CreativeClassifier | None = None,
) -> AnalysisResult:
    account_id = account_id_or_raise(ad_account_id, ctx.default_account_id)
    classifier = classifier or ActionSignalClassifier()

    # "creative" is not an insights field; the type is inferred from actions instead.
    rows = await fetch_insights(
        ctx,
        account_id,
        fields=["ad_id", "ad_name", "spend", "impressions", "clicks", "actions", "action_values"],
        date_range=date_range,
        level="ad",
        filtering=id_filter("ad.id", ad_ids),
    )

    creative_types: dict[str, str] = {}
    for r in rows:
        creative_types.setdefault(str(r.get("ad_id") or ""), classifier.classify(r))

    items: list[dict[str, Any]] = []
    for it in by_entity(rows, "ad", outcomes="nonzero"):
        items.append(
            {
                "id": it["id"],
                "name": it["name"],
                "creative_type": creative_types.get(it["id"], "image"),
                "kpis": it["kpis"],
            }
        )

    type_summary = by_label(items, lambda it: it["creative_type"], label_field="type")
    top_creatives = top_n(rank_by(items, "roas", descending=True), 5)

    if include_preview:
        with_preview = []
        for it in top_creatives:
            ad = await ctx.client.get(f"/{it['id']}", {"fields": PREVIEW_FIELDS})
            with_preview.append({**it, "preview": ad.get("creative")})
        top_creatives = with_preview

    return AnalysisResult(
        raw_data=rows,
        analysis={"items": items, "type_summary": type_summary},
        recommendations={"top_creatives": top_creatives, "test_suggestions": list(TEST_SUGGESTIONS)},
        meta={"account_id": account_id},
    )
