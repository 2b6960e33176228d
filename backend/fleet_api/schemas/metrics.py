from typing import List, Optional

from pydantic import BaseModel


class VehicleCount(BaseModel):
    total: int


class Bucket(BaseModel):
    label: str
    min: int
    max: Optional[int] = None  # None for the open-ended last bucket
    count: int


class BucketList(BaseModel):
    buckets: List[Bucket]


class DistributionItem(BaseModel):
    id: Optional[str] = None  # None when unspecified
    name: str
    count: int


class Distribution(BaseModel):
    distribution: List[DistributionItem]


class TimelineItem(BaseModel):
    month: str  # YYYY-MM
    count: int


class Timeline(BaseModel):
    timeline: List[TimelineItem]


class QuarterlyControlMetric(BaseModel):
    year: int
    quarter: int
    label: str  # 2025-Q1
    total: int
    approved: int
    pending: int
    rejected: int
    overdue: int


class QuarterlyControlMetrics(BaseModel):
    metrics: List[QuarterlyControlMetric]


class PersonnelMetric(BaseModel):
    current: int
    timeline: List[TimelineItem]
