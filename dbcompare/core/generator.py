"""
Synthetic record generator.

Produces benchmark records, random lookup keys and update payloads. All
randomness comes from one random.Random instance, so a fixed seed and a fixed
reference time reproduce the same sequence.
"""

import random
from datetime import UTC, datetime, timedelta
from typing import Any, List, Optional

from dbcompare.models.record import TestRecord

# Base identity for concurrent-write records. Keys are partitioned by worker
# inside one run only; they may repeat across runs.
CONCURRENT_WRITE_ID_BASE = 200_000

FIRST_NAMES = [
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer", "Michael", "Linda",
    "William", "Barbara", "David", "Elizabeth", "Richard", "Susan", "Joseph", "Jessica",
    "Thomas", "Sarah", "Charles", "Karen", "Christopher", "Nancy", "Daniel", "Lisa",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis",
    "Rodriguez", "Martinez", "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson", "Thomas",
    "Taylor", "Moore", "Jackson", "Martin", "Lee", "Thompson", "White", "Harris",
]

DOMAINS = [
    "example.com", "test.com", "demo.com", "sample.org", "email.net",
    "mail.com", "inbox.io", "webmail.com", "contact.biz", "corp.com",
]

DESCRIPTIONS = [
    "Experienced professional with strong background in",
    "Dedicated team member focused on",
    "Results-driven individual specializing in",
    "Innovative thinker passionate about",
    "Strategic planner with expertise in",
    "Dynamic professional committed to",
    "Detail-oriented specialist in",
    "Accomplished expert with knowledge of",
]

SKILLS = [
    "project management", "data analysis", "software development", "customer service",
    "marketing strategy", "financial planning", "quality assurance", "business operations",
    "technical support", "product design", "team leadership", "process improvement",
]

DESCRIPTION_ENDINGS = [
    " and delivering exceptional results.",
    " with proven track record.",
    " and continuous improvement.",
    " to drive organizational success.",
    " and collaborative problem-solving.",
]


class RecordGenerator:
    """Deterministic (under a seed) source of benchmark data."""

    def __init__(
        self,
        seed: Optional[int] = None,
        reference_time: Optional[datetime] = None,
    ):
        self.seed = seed
        self.random = random.Random(seed)
        self.reference_time = reference_time or datetime.now(UTC)

    def generate_record(self, record_id: int) -> TestRecord:
        first_name = self.random.choice(FIRST_NAMES)
        last_name = self.random.choice(LAST_NAMES)

        return TestRecord(
            id=record_id,
            name=f"{first_name} {last_name}",
            email=self._generate_email(first_name, last_name, record_id),
            age=self.random.randrange(60) + 18,
            balance=self.random.randrange(100_000) / 100,
            created_at=self.reference_time
            - timedelta(hours=self.random.randrange(365 * 24)),
            description=self._generate_description(),
            is_active=self.random.random() > 0.3,
        )

    def generate_records(self, count: int, start_id: int) -> List[TestRecord]:
        """Generate `count` records with consecutive ids from `start_id`."""
        return [self.generate_record(start_id + i) for i in range(count)]

    def generate_batch(self, batch_size: int, batch_number: int) -> List[TestRecord]:
        return self.generate_records(batch_size, batch_number * batch_size)

    def concurrent_write_record(
        self, worker_id: int, index: int, writes_per_worker: int
    ) -> TestRecord:
        """Record for a concurrent-write worker, keyed by worker and local counter."""
        record_id = CONCURRENT_WRITE_ID_BASE + worker_id * writes_per_worker + index
        return self.generate_record(record_id)

    def random_id(self, max_id: int) -> int:
        """Random id in [1, max_id]; 1 when max_id is not positive."""
        if max_id <= 0:
            return 1
        return self.random.randrange(max_id) + 1

    def random_ids(self, count: int, max_id: int) -> List[int]:
        """Unique random ids in [1, max_id]."""
        if max_id <= 0:
            return []
        count = min(count, max_id)
        return [i + 1 for i in self.random.sample(range(max_id), count)]

    def update_value(self, field: str) -> Any:
        """Random replacement value for an updatable column."""
        if field == "balance":
            return self.random.randrange(10_000) / 100
        if field == "age":
            return self.random.randrange(60) + 18
        if field == "active":
            return self.random.random() > 0.5
        if field == "name":
            return f"{self.random.choice(FIRST_NAMES)} {self.random.choice(LAST_NAMES)}"
        return None

    def _generate_email(self, first_name: str, last_name: str, record_id: int) -> str:
        domain = self.random.choice(DOMAINS)
        style = self.random.randrange(4)
        if style == 0:
            return f"{first_name}.{last_name}@{domain}"
        if style == 1:
            return f"{first_name}_{last_name}@{domain}"
        if style == 2:
            return f"{first_name}{record_id}@{domain}"
        return f"{first_name}.{last_name}{record_id}@{domain}"

    def _generate_description(self) -> str:
        desc = self.random.choice(DESCRIPTIONS)
        skill = self.random.choice(SKILLS)
        ending = self.random.choice(DESCRIPTION_ENDINGS)
        return f"{desc} {skill}{ending}"
