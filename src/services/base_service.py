"""
Base service layer for unified database operations
"""

import logging
import uuid
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

from database.connection import get_db_pool
import asyncpg

logger = logging.getLogger(__name__)

# Resource registry: table, primary key and field access per resource
RESOURCE_CONFIG = {
    "panels": {
        "table": "panels",
        "id_field": "panel_id",
        "fields": [
            "panel_id", "owner", "title", "url", "api_url", "api_key",
            "level", "likes", "comments", "created_at"
        ],
        "writable": ["owner", "title", "url", "api_url", "api_key", "level", "likes", "comments"]
    },
    "users": {
        "table": "users",
        "id_field": "user_id",
        "fields": ["user_id", "name"],
        "writable": []
    }
}

@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None

class BaseService:
    """Base service wrapping parameterised SQL for a single resource"""

    def __init__(self, resource_name: str):
        if resource_name not in RESOURCE_CONFIG:
            raise ValueError(f"Unknown resource: {resource_name}")

        self.resource_name = resource_name
        self.config = RESOURCE_CONFIG[resource_name]
        self.table_name = self.config["table"]
        self.id_field = self.config["id_field"]
        logger.info(f"BaseService initialized for resource: {resource_name}")

    async def create(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Create a new record using INSERT

        Args:
            data: Dictionary of field values to insert

        Returns:
            ServiceResult with created record data
        """
        invalid = self._validate_fields(data.keys(), self.get_writable_fields())
        if invalid:
            return invalid

        try:
            result = await self._execute_insert_sql(data)

            return ServiceResult(
                success=True,
                data=result["data"],
                count=result["count"]
            )

        except Exception as e:
            logger.error(f"Create operation failed for {self.resource_name}: {e}", exc_info=True)

            if isinstance(e, RuntimeError):
                error_msg = str(e).lower()
                if "conflict" in error_msg or "unique constraint" in error_msg:
                    return ServiceResult(
                        success=False,
                        error="Record already exists",
                        error_type="CONFLICT_ERROR"
                    )
                return ServiceResult(
                    success=False,
                    error=f"Database operation failed: {e}",
                    error_type="DATABASE_ERROR"
                )
            return ServiceResult(
                success=False,
                error=str(e),
                error_type="EXECUTION_ERROR"
            )

    async def read(
        self,
        fields: Optional[List[str]] = None,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Dict[str, str]]] = None,
        limit: Optional[int] = 100
    ) -> ServiceResult:
        """
        Read records using SELECT

        Args:
            fields: List of fields to select (default: all fields)
            filters: Dictionary of equality filters {field_name: value}
            order_by: List of ordering specs [{"field": "created_at", "dir": "desc"}]
            limit: Maximum number of records to return, None for no limit

        Returns:
            ServiceResult with matched records
        """
        if fields is None:
            fields = self.get_readable_fields()

        referenced = list(fields) + list((filters or {}).keys()) + [o["field"] for o in (order_by or [])]
        invalid = self._validate_fields(referenced, self.get_readable_fields())
        if invalid:
            return invalid

        for order_spec in order_by or []:
            if order_spec.get("dir", "asc").lower() not in ("asc", "desc"):
                return ServiceResult(
                    success=False,
                    error=f"Invalid sort direction: {order_spec.get('dir')}",
                    error_type="INVALID_QUERY"
                )

        try:
            query, params = self._build_read_query(fields, filters, order_by, limit)
            result = await self._execute_read_sql(query, params)

            return ServiceResult(
                success=True,
                data=result["data"],
                count=result["count"]
            )

        except Exception as e:
            logger.error(f"Read operation failed for {self.resource_name}: {e}")
            return ServiceResult(
                success=False,
                error=str(e),
                error_type="EXECUTION_ERROR"
            )

    async def update(self, record_id: str, data: Dict[str, Any]) -> ServiceResult:
        """
        Update a record by primary key

        Args:
            record_id: Primary key value of record to update
            data: Dictionary of field values to update

        Returns:
            ServiceResult with updated record data
        """
        if not data:
            return ServiceResult(
                success=False,
                error="No fields provided for update",
                error_type="INVALID_QUERY"
            )

        invalid = self._validate_fields(data.keys(), self.get_writable_fields())
        if invalid:
            return invalid

        try:
            result = await self._execute_update_sql(record_id, data)

            return ServiceResult(
                success=True,
                data=result["data"],
                count=result["count"]
            )

        except Exception as e:
            logger.error(f"Update operation failed for {self.resource_name}: {e}", exc_info=True)

            error_msg = str(e).lower()
            if "no record found" in error_msg:
                return ServiceResult(
                    success=False,
                    error=f"Record with id {record_id} not found",
                    error_type="RESOURCE_NOT_FOUND"
                )
            return ServiceResult(
                success=False,
                error=str(e),
                error_type="EXECUTION_ERROR"
            )

    async def get_by_id(self, record_id: str) -> ServiceResult:
        """
        Get a single record by primary key

        Returns:
            ServiceResult with the record, or RESOURCE_NOT_FOUND
        """
        result = await self.read(
            filters={self.id_field: record_id},
            limit=1
        )

        if result.success and not result.data:
            return ServiceResult(
                success=False,
                error=f"Record not found with ID: {record_id}",
                error_type="RESOURCE_NOT_FOUND"
            )
        return result

    async def delete(self, record_id: str, record: Optional[Dict[str, Any]] = None) -> ServiceResult:
        """
        Delete a record by primary key

        Args:
            record_id: Primary key value of record to delete
            record: The record if the caller already loaded it; skips the lookup

        Returns:
            ServiceResult carrying the deleted record
        """
        if record is None:
            record_result = await self.get_by_id(record_id)
            if not record_result.success:
                return record_result
            record = record_result.data[0]

        try:
            result = await self._execute_delete_sql(record_id)

            return ServiceResult(
                success=True,
                data=[record],  # Return the deleted record data
                count=result["count"]
            )

        except Exception as e:
            logger.error(f"Delete operation failed for {self.resource_name}: {e}")
            return ServiceResult(
                success=False,
                error=str(e),
                error_type="EXECUTION_ERROR"
            )

    def get_readable_fields(self) -> List[str]:
        """Get list of readable field names for this resource"""
        return list(self.config["fields"])

    def get_writable_fields(self) -> List[str]:
        """Get list of writable field names for this resource"""
        return list(self.config["writable"])

    def _validate_fields(self, names, allowed: List[str]) -> Optional[ServiceResult]:
        """Reject unknown field names before they reach SQL text"""
        unknown = [name for name in names if name not in allowed]
        if unknown:
            return ServiceResult(
                success=False,
                error=f"Invalid fields for {self.resource_name}: {', '.join(unknown)}",
                error_type="INVALID_QUERY"
            )
        return None

    @staticmethod
    def _serialize_row(row) -> Dict[str, Any]:
        """Convert a database row into JSON-friendly values"""
        data = dict(row)
        for key, value in data.items():
            if hasattr(value, 'isoformat'):
                data[key] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                data[key] = str(value)
        return data

    # Direct SQL execution methods

    async def _execute_read_sql(self, query: str, params: List[Any]) -> Dict[str, Any]:
        """Execute a SELECT statement"""
        db_pool = get_db_pool()
        if not db_pool:
            raise RuntimeError("Database pool not initialized")

        async with db_pool.acquire() as conn:
            logger.info(f"Executing READ query: {query}")
            logger.info(f"Parameters: {params}")

            try:
                rows = await conn.fetch(query, *params)
                data = [self._serialize_row(row) for row in rows]

                return {
                    "data": data,
                    "count": len(data)
                }

            except asyncpg.PostgresError as e:
                logger.error(f"Database error: {e}")
                raise RuntimeError(f"Database query failed: {str(e)}")

    async def _execute_insert_sql(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Execute an INSERT statement and return the stored row"""
        db_pool = get_db_pool()
        if not db_pool:
            raise RuntimeError("Database pool not initialized")

        async with db_pool.acquire() as conn:
            async with conn.transaction():
                query, params = self._build_insert_query(values)

                logger.info(f"Executing INSERT: {query}")
                logger.info(f"Parameters: {list(values.keys())}")

                try:
                    row = await conn.fetchrow(query, *params)

                    if not row:
                        raise RuntimeError("Insert operation failed - no data returned")

                    return {
                        "data": [self._serialize_row(row)],
                        "count": 1
                    }

                except asyncpg.UniqueViolationError as e:
                    logger.warning(f"Unique constraint violation: {e}")
                    raise RuntimeError("CONFLICT: Unique constraint violation")
                except asyncpg.PostgresError as e:
                    logger.error(f"Database error during INSERT: {e}")
                    raise RuntimeError(f"Database INSERT failed: {str(e)}")

    async def _execute_update_sql(self, record_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Execute an UPDATE statement and return the post-image"""
        db_pool = get_db_pool()
        if not db_pool:
            raise RuntimeError("Database pool not initialized")

        async with db_pool.acquire() as conn:
            async with conn.transaction():
                query, params = self._build_update_query(record_id, values)

                logger.info(f"Executing UPDATE: {query}")
                logger.info(f"Parameters: {list(values.keys())} for {record_id}")

                try:
                    row = await conn.fetchrow(query, *params)

                    if not row:
                        raise RuntimeError("No record found with specified ID for update")

                    return {
                        "data": [self._serialize_row(row)],
                        "count": 1
                    }

                except asyncpg.PostgresError as e:
                    logger.error(f"Database error during UPDATE: {e}")
                    raise RuntimeError(f"Database UPDATE failed: {str(e)}")

    async def _execute_delete_sql(self, record_id: str) -> Dict[str, Any]:
        """Execute a DELETE by primary key"""
        db_pool = get_db_pool()
        if not db_pool:
            raise RuntimeError("Database pool not initialized")

        async with db_pool.acquire() as conn:
            async with conn.transaction():
                query = f"DELETE FROM {self.table_name} WHERE {self.id_field} = $1"

                logger.info(f"Executing DELETE: {query}")
                logger.info(f"Parameters: [{record_id}]")

                try:
                    result = await conn.execute(query, record_id)

                    # asyncpg returns "DELETE N" where N is the number of rows
                    deleted_count = int(result.split()[-1]) if result else 0

                    if deleted_count == 0:
                        raise RuntimeError(f"No record found with ID: {record_id}")

                    return {
                        "count": deleted_count
                    }

                except asyncpg.PostgresError as e:
                    logger.error(f"Database error during DELETE: {e}")
                    raise RuntimeError(f"Database DELETE failed: {str(e)}")

    def _build_read_query(
        self,
        fields: List[str],
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Dict[str, str]]] = None,
        limit: Optional[int] = 100
    ) -> tuple[str, List[Any]]:
        """Build a SELECT statement with positional parameters"""
        params = []
        param_counter = 1

        query = f"SELECT {', '.join(fields)} FROM {self.table_name}"

        # WHERE clause, equality only
        if filters:
            where_parts = []
            for field_name, value in filters.items():
                where_parts.append(f"{field_name} = ${param_counter}")
                params.append(value)
                param_counter += 1

            query += f" WHERE {' AND '.join(where_parts)}"

        # ORDER BY clause
        if order_by:
            order_parts = []
            for order_spec in order_by:
                direction = order_spec.get("dir", "asc").upper()
                order_parts.append(f"{order_spec['field']} {direction}")

            query += f" ORDER BY {', '.join(order_parts)}"

        if limit is not None:
            query += f" LIMIT ${param_counter}"
            params.append(limit)

        return query, params

    def _build_insert_query(self, values: Dict[str, Any]) -> tuple[str, List[Any]]:
        """Build an INSERT ... RETURNING * statement"""
        params = []
        field_names = list(values.keys())
        field_placeholders = []

        for param_counter, value in enumerate(values.values(), start=1):
            field_placeholders.append(f"${param_counter}")
            params.append(value)

        # created_at is auto-managed, stored as UTC
        if 'created_at' not in field_names:
            field_names.append('created_at')
            field_placeholders.append("NOW() AT TIME ZONE 'UTC'")

        query = (
            f"INSERT INTO {self.table_name} ({', '.join(field_names)}) "
            f"VALUES ({', '.join(field_placeholders)}) RETURNING *"
        )

        return query, params

    def _build_update_query(self, record_id: str, values: Dict[str, Any]) -> tuple[str, List[Any]]:
        """Build an UPDATE by primary key returning the post-image"""
        params = []
        param_counter = 1

        set_parts = []
        for field_name, value in values.items():
            set_parts.append(f"{field_name} = ${param_counter}")
            params.append(value)
            param_counter += 1

        query = f"UPDATE {self.table_name} SET {', '.join(set_parts)}"
        query += f" WHERE {self.id_field} = ${param_counter}"
        params.append(record_id)
        query += " RETURNING *"

        return query, params

