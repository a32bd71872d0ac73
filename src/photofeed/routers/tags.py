"""Router for tag vocabulary diagnostics.

Lets site maintainers check that the tags field crews use in CompanyCam
line up with the gallery vocabulary.
"""

from fastapi import APIRouter, Depends, Query

from photofeed.dependencies import get_gateway
from photofeed.gateway import CompanyCamGateway
from photofeed.tags import MASTER_TAG, SERVICE_TAGS, analyze_tag_vocabulary

router = APIRouter(
    prefix="/api/v1",
    tags=["tags"],
)


@router.get("/tags", response_model=dict, operation_id="list_account_tags")
def list_account_tags(
    simple: bool = Query(False),
    gateway: CompanyCamGateway = Depends(get_gateway),
):
    tags = gateway.list_tags()
    if simple:
        return {
            "total_tags": len(tags),
            "tag_names": sorted((tag.label for tag in tags), key=str.casefold),
        }
    return {
        "total_tags": len(tags),
        "tags": [tag.to_dict() for tag in sorted(tags, key=lambda tag: tag.label.casefold())],
    }


@router.get("/tags/analysis", response_model=dict, operation_id="analyze_account_tags")
def analyze_account_tags(gateway: CompanyCamGateway = Depends(get_gateway)):
    tags = [tag.to_dict() for tag in gateway.list_tags()]
    report = analyze_tag_vocabulary(tags)
    report["required_tags"] = [MASTER_TAG, *SERVICE_TAGS]
    return report
