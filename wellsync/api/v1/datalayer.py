"""Data layer endpoints used by the paired watch (see services/data_layer_client.py)."""

from fastapi import APIRouter, Query

from wellsync.api.deps import PairedNode, Services
from wellsync.schemas.datalayer import DataItemBody, DataItemResponse, DataItemsResponse
from wellsync.services.data_layer import DataItem

router = APIRouter(prefix="/datalayer", tags=["datalayer"])


def _item_to_response(item: DataItem) -> DataItemResponse:
    return DataItemResponse(
        path=item.path,
        payload=item.payload,
        source_node=item.source_node,
        seq=item.seq,
        published_at=item.published_at,
    )


@router.put("/items/{path:path}", response_model=DataItemResponse, summary="Publish data item")
async def put_item(services: Services, node_id: PairedNode, path: str, body: DataItemBody) -> DataItemResponse:
    item = await services.hub.put("/" + path.strip("/"), body.payload, node_id)
    return _item_to_response(item)


@router.get("/items", response_model=DataItemsResponse, summary="Latest data items newer than since")
async def get_items(
    services: Services,
    node_id: PairedNode,
    prefix: str = "",
    since: int = Query(default=0, ge=0),
) -> DataItemsResponse:
    items = services.hub.items_since(prefix, since)
    return DataItemsResponse(items=[_item_to_response(i) for i in items], latest_seq=services.hub.latest_seq)
