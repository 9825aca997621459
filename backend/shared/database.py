import logging
from azure.core.exceptions import ResourceExistsError
from azure.data.tables import TableServiceClient, TableClient

from shared.config import get_connection_string

logger = logging.getLogger(__name__)

TABLE_LISTINGS = "Listings"
TABLE_BOOKINGS = "Bookings"


def get_table_service_client() -> TableServiceClient:
    connection_string = get_connection_string()
    return TableServiceClient.from_connection_string(connection_string)


def get_table_client(table_name: str) -> TableClient:
    service_client = get_table_service_client()

    try:
        service_client.create_table_if_not_exists(table_name)
    except ResourceExistsError:
        logger.debug("Table %s already exists", table_name)

    return service_client.get_table_client(table_name)
