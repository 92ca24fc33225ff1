"""
Record Store - tenant-scoped reads and writes of tender_projects.

Every query this module issues filters by tenant_id. That filter is the
multi-tenancy boundary. No method reads across tenants.

The store owns no global state. It is handed a SQLAlchemy Engine and opens a
fresh connection per call, so it is safe to use from the dashboard thread pool.

Usage:
    from services.record_store import RecordStore

    store = RecordStore(engine)
    records = store.fetch("tenant-1", window, DimensionFilters(), columns=('id', 'budget'))
    store.upsert("tenant-1", [{"id": "p1", "title": "...", "publishTime": 1714000000000}])
"""

import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, distinct, func, or_, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from models.tender_project import TenderProject
from services.analytics.base import DimensionFilters, TenderRecord
from services.time_window import TimeWindow
from utils.sanitize import sanitize_record, split_detail_metadata

logger = logging.getLogger('record_store')

# Columns every fetched record carries regardless of what the caller asks for
IDENTITY_COLUMNS = ('tenant_id', 'id')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _record_columns() -> List[str]:
    return [f for f in TenderRecord.__dataclass_fields__]


class RecordStore:
    """Parameterized, tenant-scoped access to tender records."""

    def __init__(self, engine: Engine, on_change: Optional[Callable[[str], Any]] = None):
        self._engine = engine
        self._table = TenderProject.__table__
        self._on_change = on_change

    def set_change_listener(self, on_change: Optional[Callable[[str], Any]]) -> None:
        """Called with the tenant id after every successful upsert (cache invalidation)."""
        self._on_change = on_change

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _scope(self, tenant_id: str, window: Optional[TimeWindow], filters: Optional[DimensionFilters]) -> list:
        if not tenant_id:
            raise ValueError("tenant_id is required")
        c = self._table.c
        clauses = [c.tenant_id == tenant_id]
        if window is not None:
            clauses.append(c.publish_time.between(window.start, window.end))
        if filters is not None:
            if filters.area is not None:
                clauses.append(c.area == filters.area)
            if filters.industry is not None:
                clauses.append(c.industry == filters.industry)
        return clauses

    def _apply_timeout(self, conn, timeout: Optional[float]) -> None:
        if not timeout or conn.dialect.name != 'postgresql':
            return
        # SET LOCAL does not accept bind parameters; value is an int we computed
        conn.execute(text(f"SET LOCAL statement_timeout = {int(math.ceil(timeout * 1000))}"))

    def _select_columns(self, columns: Optional[Sequence[str]]):
        allowed = _record_columns()
        wanted = list(IDENTITY_COLUMNS)
        for name in (columns or allowed):
            if name not in allowed:
                raise ValueError(f"Unknown record column: {name}")
            if name not in wanted:
                wanted.append(name)
        return [self._table.c[name] for name in wanted]

    @staticmethod
    def _to_record(row) -> TenderRecord:
        values = dict(row._mapping)
        if 'detail' in values:
            text_part, metadata = split_detail_metadata(values['detail'])
            values['detail'] = text_part
            if metadata is not None and not values.get('detail_metadata'):
                values['detail_metadata'] = metadata
        if values.get('title') is None:
            values['title'] = ""
        return TenderRecord(**values)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(
        self,
        tenant_id: str,
        window: TimeWindow,
        filters: Optional[DimensionFilters] = None,
        columns: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
    ) -> List[TenderRecord]:
        """
        Records of one tenant whose publishTime falls in the window.

        Args:
            tenant_id: Owning tenant (required)
            window: Inclusive publishTime bounds
            filters: Optional area / industry equality filters
            columns: Record fields to load (tenant_id and id are always loaded)
            timeout: Statement timeout in seconds (enforced on PostgreSQL)
        """
        stmt = (
            select(*self._select_columns(columns))
            .where(and_(*self._scope(tenant_id, window, filters)))
            .order_by(self._table.c.publish_time, self._table.c.id)
        )
        with self._engine.begin() as conn:
            self._apply_timeout(conn, timeout)
            rows = conn.execute(stmt).fetchall()
        return [self._to_record(row) for row in rows]

    def filter_options(self, tenant_id: str) -> Dict[str, Any]:
        """Distinct industries and areas plus the publishTime span of one tenant."""
        c = self._table.c
        scope = and_(*self._scope(tenant_id, None, None))
        with self._engine.connect() as conn:
            industries = conn.execute(
                select(distinct(c.industry)).where(scope, c.industry.isnot(None), c.industry != '')
                .order_by(c.industry)
            ).scalars().all()
            areas = conn.execute(
                select(distinct(c.area)).where(scope, c.area.isnot(None), c.area != '')
                .order_by(c.area)
            ).scalars().all()
            min_time, max_time = conn.execute(
                select(func.min(c.publish_time), func.max(c.publish_time)).where(scope)
            ).one()
        return {
            'industries': list(industries),
            'areas': list(areas),
            'dateRange': {'minPublishTime': min_time, 'maxPublishTime': max_time},
        }

    def list_projects(
        self,
        tenant_id: str,
        window: Optional[TimeWindow] = None,
        filters: Optional[DimensionFilters] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Paginated projects, newest publishTime first. `search` matches title/buyer/winner."""
        page = max(1, int(page))
        page_size = min(max(1, int(page_size)), MAX_PAGE_SIZE)
        clauses = self._scope(tenant_id, window, filters)
        if search:
            pattern = f"%{search.strip()}%"
            clauses.append(or_(
                TenderProject.title.like(pattern),
                TenderProject.buyer.like(pattern),
                TenderProject.winner.like(pattern),
            ))
        condition = and_(*clauses)

        with Session(self._engine) as session:
            total = session.execute(
                select(func.count()).select_from(TenderProject).where(condition)
            ).scalar_one()
            projects = session.execute(
                select(TenderProject)
                .where(condition)
                .order_by(TenderProject.publish_time.desc(), TenderProject.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).scalars().all()
            items = [p.to_dict() for p in projects]

        total_pages = math.ceil(total / page_size) if total else 0
        return {
            'projects': items,
            'pagination': {
                'page': page,
                'pageSize': page_size,
                'total': total,
                'totalPages': total_pages,
                'hasNext': page < total_pages,
                'hasPrev': page > 1,
            },
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, tenant_id: str, raw_records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Insert or overwrite records by (tenant_id, id).

        Every raw record goes through sanitize_record() first. Records with no
        id are skipped. Field-level problems are reported, not fatal.

        Returns:
            {inserted, updated, skipped, warnings: [{id, field, reason}]}
        """
        if not tenant_id:
            raise ValueError("tenant_id is required")
        column_names = {col.name for col in self._table.columns}
        inserted = updated = skipped = 0
        warnings: List[Dict[str, Any]] = []

        with Session(self._engine) as session:
            for raw in raw_records:
                record, field_warnings = sanitize_record(raw)
                record_id = record.get('id')
                if not record_id:
                    skipped += 1
                    continue
                for w in field_warnings:
                    warnings.append({'id': record_id, 'field': w.field, 'reason': w.reason})

                values = {k: v for k, v in record.items() if k in column_names}
                values['tenant_id'] = tenant_id
                values['title'] = values.get('title') or ""
                values.pop('created_at', None)
                values.pop('updated_at', None)

                existing = session.get(TenderProject, (tenant_id, record_id))
                if existing is None:
                    session.add(TenderProject(**values))
                    session.flush()
                    inserted += 1
                else:
                    for key, value in values.items():
                        setattr(existing, key, value)
                    updated += 1
            session.commit()

        logger.info(
            "records_upserted tenant=%s inserted=%d updated=%d skipped=%d warnings=%d",
            tenant_id, inserted, updated, skipped, len(warnings),
        )
        if self._on_change is not None and (inserted or updated):
            self._on_change(tenant_id)
        return {'inserted': inserted, 'updated': updated, 'skipped': skipped, 'warnings': warnings}
