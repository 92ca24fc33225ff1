"""
TenderProject Model - one row per tender/bidding project, owned by one tenant.

Ownership:
    (tenant_id, id) is the primary key. `id` is only unique WITHIN a tenant.
    Every query and mutation MUST filter by tenant_id - it is the
    multi-tenancy boundary.

Upload Field Mapping (JSON upload format):
  JSON key        → DB column          Notes
  ─────────────────────────────────────────────────────────────
  id              → id                 Required, ≤255
  title           → title              Required, ≤500
  area            → area               Province, ≤50
  city / district → city / district    ≤50
  buyer / winner  → buyer / winner     ≤300
  industry        → industry           ≤100, null = unclassified
  publishTime     → publish_time       Epoch SECONDS (ms converted on ingest)
  bidOpenTime     → bid_open_time      Epoch seconds
  bidEndTime      → bid_end_time       Epoch seconds
  signEndTime     → sign_end_time      Epoch seconds
  budget          → budget             Yuan, nullable
  bidAmount       → bid_amount         Yuan, nullable
  detail          → detail             Free text
  (computed)      → detail_metadata    Original date-string formats (JSON)
"""
from datetime import datetime

from models.database import db
from constants import FIELD_MAX_LENGTHS, TENANT_ID_MAX_LENGTH


class TenderProject(db.Model):
    __tablename__ = 'tender_projects'
    __table_args__ = (
        db.Index('ix_tender_projects_tenant_publish', 'tenant_id', 'publish_time'),
        db.Index('ix_tender_projects_tenant_area', 'tenant_id', 'area'),
        db.Index('ix_tender_projects_tenant_industry', 'tenant_id', 'industry'),
    )

    # === Ownership / identity ===
    tenant_id = db.Column(db.String(TENANT_ID_MAX_LENGTH), primary_key=True)
    id = db.Column(db.String(FIELD_MAX_LENGTHS['id']), primary_key=True)

    # === Descriptive text ===
    title = db.Column(db.String(FIELD_MAX_LENGTHS['title']), nullable=False)
    buyer = db.Column(db.String(FIELD_MAX_LENGTHS['buyer']))
    buyer_class = db.Column(db.String(FIELD_MAX_LENGTHS['buyer_class']))
    buyer_tel = db.Column(db.String(FIELD_MAX_LENGTHS['buyer_tel']))
    buyer_person = db.Column(db.String(FIELD_MAX_LENGTHS['buyer_person']))
    winner = db.Column(db.String(FIELD_MAX_LENGTHS['winner']))
    agency = db.Column(db.String(FIELD_MAX_LENGTHS['agency']))
    agency_tel = db.Column(db.String(FIELD_MAX_LENGTHS['agency_tel']))
    agency_person = db.Column(db.String(FIELD_MAX_LENGTHS['agency_person']))
    site = db.Column(db.String(FIELD_MAX_LENGTHS['site']))
    subtype = db.Column(db.String(FIELD_MAX_LENGTHS['subtype']))

    # === Categorical (null/empty = unclassified) ===
    area = db.Column(db.String(FIELD_MAX_LENGTHS['area']))
    city = db.Column(db.String(FIELD_MAX_LENGTHS['city']))
    district = db.Column(db.String(FIELD_MAX_LENGTHS['district']))
    industry = db.Column(db.String(FIELD_MAX_LENGTHS['industry']))

    # === Timeline (epoch seconds) ===
    publish_time = db.Column(db.BigInteger, nullable=True)
    bid_open_time = db.Column(db.BigInteger)
    bid_end_time = db.Column(db.BigInteger)
    sign_end_time = db.Column(db.BigInteger)

    # === Money (yuan) ===
    budget = db.Column(db.Numeric(16, 2))
    bid_amount = db.Column(db.Numeric(16, 2))

    # === Free text + structured sidecar ===
    detail = db.Column(db.Text)
    detail_metadata = db.Column(db.JSON)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'area': self.area,
            'city': self.city,
            'buyer': self.buyer,
            'winner': self.winner,
            'industry': self.industry,
            'publishTime': self.publish_time,
            'bidOpenTime': self.bid_open_time,
            'bidEndTime': self.bid_end_time,
            'budget': float(self.budget) if self.budget is not None else None,
            'bidAmount': float(self.bid_amount) if self.bid_amount is not None else None,
        }

    def __repr__(self):
        return f"<TenderProject {self.tenant_id}/{self.id}>"
