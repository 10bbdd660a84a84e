"""Small identity values kept across restarts: client id and active dataset."""

import logging

from insightguru.db.sqlite import get_storage_session
from insightguru.models.chat import ClientContext, new_id
from insightguru.repositories import storage_repo

logger = logging.getLogger(__name__)

CLIENT_ID_KEY = "client_id"
DATASET_NAME_KEY = "dataset_name"
# Older uploads stored the handle under other names; first non-empty wins.
DATASET_ID_KEYS = ("dataset_id", "datasetId", "db_path", "dbPath")


async def load_context() -> ClientContext:
    async with get_storage_session() as session:
        client_id = await storage_repo.get_item(session, CLIENT_ID_KEY)
        if not client_id:
            client_id = new_id()
            await storage_repo.set_item(session, CLIENT_ID_KEY, client_id)
            logger.info("Minted new client id %s", client_id)

        dataset_id = ""
        for key in DATASET_ID_KEYS:
            value = await storage_repo.get_item(session, key)
            if value:
                dataset_id = value
                break

        dataset_name = await storage_repo.get_item(session, DATASET_NAME_KEY) or ""

    return ClientContext(client_id=client_id, dataset_id=dataset_id, dataset_name=dataset_name)


async def set_dataset(context: ClientContext, dataset_id: str, dataset_name: str = "") -> ClientContext:
    """Persist a newly issued dataset handle and return the updated context."""
    async with get_storage_session() as session:
        await storage_repo.set_item(session, DATASET_ID_KEYS[0], dataset_id)
        await storage_repo.set_item(session, DATASET_NAME_KEY, dataset_name)
    return context.model_copy(update={"dataset_id": dataset_id, "dataset_name": dataset_name})
