"""
Bid message composition.

Baseline mode picks one generic template. Enriched mode picks a template
bucket from the item's category/title, fills in the subject and appends short
clauses about urgency, competition, customer presence, attachments and scope.
"""
import random
import re
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .models import ListingItem
from .utils import clean_text

BASELINE_TEMPLATES = [
    "Hi! I'm interested in working on this project. I have relevant experience and can deliver quality work on time. Let's discuss the details!",
    "Hello! I'd be happy to help with this assignment. I have the skills needed and can meet your deadline. Please let me know if you'd like to discuss further.",
    "Hi there! I'm available to work on this project and have experience in this area. I can provide quality work within your timeframe. Looking forward to hearing from you!",
]

DEFAULT_BUCKET = "general"

# First matching row wins
KEYWORD_BUCKETS: List[Tuple[Tuple[str, ...], str]] = [
    (("proofread", "editing", "edit ", "rewrite", "paraphras"), "editing"),
    (("statistic", "spss", "excel", "data analysis", "econometric"), "analysis"),
    (("math", "calculus", "algebra", "physics", "chemistry", "engineering"), "technical"),
    (("programming", "python", "java", "code", "coding", "software", "sql"), "programming"),
    (("research", "literature review", "thesis", "dissertation", "case study"), "research"),
    (("presentation", "powerpoint", "slides"), "presentation"),
    (("essay", "paper", "article", "report", "writing", "reflection"), "writing"),
    (("business", "marketing", "management", "finance", "accounting"), "business"),
]

BUCKET_TEMPLATES = {
    "writing": [
        "Hi! I'm an experienced writer and I'd love to take on your {subject}. I follow instructions closely and deliver original, well-structured work.",
        "Hello! I write {subject} assignments regularly and can deliver a clear, well-argued piece on time.",
    ],
    "research": [
        "Hi! Research-heavy work like your {subject} is my strength. I use credible sources and cite them properly.",
        "Hello! I'd be glad to handle this {subject}. I'm comfortable with academic research and proper referencing.",
    ],
    "technical": [
        "Hi! I have a strong background in {subject} and can provide accurate, step-by-step solutions.",
        "Hello! {subject} problems are my specialty. I'll show all the work so it's easy to follow.",
    ],
    "programming": [
        "Hi! I'm a developer experienced with {subject} tasks. I write clean, commented code and test it before delivery.",
        "Hello! I can take care of this {subject} task with working, well-documented code.",
    ],
    "analysis": [
        "Hi! I do {subject} work often and can deliver correct results with a clear interpretation.",
        "Hello! I'm comfortable with {subject} and can explain every step of the analysis.",
    ],
    "editing": [
        "Hi! I'd be happy to polish your {subject}. I'll fix grammar, flow and structure while keeping your voice.",
        "Hello! Careful {subject} is something I do every day, so your text will come back clean and consistent.",
    ],
    "presentation": [
        "Hi! I can build a clean, engaging {subject} with concise slides and speaker notes if needed.",
    ],
    "business": [
        "Hi! I have solid experience with {subject} topics and can deliver practical, well-supported work.",
        "Hello! I'd be glad to help with this {subject} task using relevant frameworks and real examples.",
    ],
    DEFAULT_BUCKET: BASELINE_TEMPLATES,
}

URGENT_KEYWORDS = ("urgent", "asap", "today", "tonight", "within 24", "rush", "immediately")

PAGES_RE = re.compile(r"(\d{1,3})\s*(?:pages?|pp\.?)\b", re.I)
WORDS_RE = re.compile(r"(\d{1,3}(?:[,\s]\d{3})*|\d+)\s*words?\b", re.I)

HIGH_COMPETITION_BIDS = 10
MODERATE_COMPETITION_BIDS = 5


def estimate_scope(text: str) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(pages, words)`` mentioned in the text, None when absent."""
    if not text:
        return None, None
    pages = words = None
    m = PAGES_RE.search(text)
    if m:
        pages = int(m.group(1))
    m = WORDS_RE.search(text)
    if m:
        words = int(re.sub(r"[,\s]", "", m.group(1)))
    return pages, words


def pick_bucket(text: str) -> str:
    lowered = (text or "").lower()
    for keywords, bucket in KEYWORD_BUCKETS:
        if any(k in lowered for k in keywords):
            return bucket
    return DEFAULT_BUCKET


class MessageComposer:
    """Builds the text submitted with a bid."""

    def __init__(self, mode: str = "enriched", max_length: int = 600, urgent_hours: float = 24.0,
                 rng: Optional[random.Random] = None, clock: Callable[[], datetime] = datetime.now):
        self.mode = mode
        self.max_length = max_length
        self.urgent_hours = urgent_hours
        self.rng = rng or random.Random()
        self.clock = clock

    def compose(self, item: Optional[ListingItem] = None) -> str:
        if self.mode == "baseline" or item is None:
            return self.rng.choice(BASELINE_TEMPLATES)
        return self._enriched(item)

    def _enriched(self, item: ListingItem) -> str:
        category = clean_text(item.category)
        title = clean_text(item.title)
        bucket = pick_bucket(f"{category} {title}")
        template = self.rng.choice(BUCKET_TEMPLATES[bucket])
        message = template.replace("{subject}", self._subject(category, title, bucket))

        for clause in self._clauses(item, f"{title} {clean_text(item.description)}"):
            if len(message) + 1 + len(clause) > self.max_length:
                break
            message = f"{message} {clause}"
        return message

    @staticmethod
    def _subject(category: str, title: str, bucket: str) -> str:
        if category:
            return category.lower()
        if bucket != DEFAULT_BUCKET:
            return bucket
        return "assignment"

    def _clauses(self, item: ListingItem, text: str) -> List[str]:
        clauses = []
        if self._is_urgent(item, text):
            clauses.append("I can start right away and deliver well before your deadline.")

        if item.bid_count >= HIGH_COMPETITION_BIDS:
            clauses.append("I know you have many offers, so I'll keep it simple: I'll follow every instruction and keep you updated throughout.")
        elif item.bid_count >= MODERATE_COMPETITION_BIDS:
            clauses.append("I'll send you a short plan first so you know exactly what to expect.")

        if item.customer_online:
            clauses.append("I see you're online now, so I'm happy to discuss the details right away.")
        if item.has_attachments:
            clauses.append("I'll review the attached files carefully before starting.")

        pages, words = estimate_scope(text)
        if pages:
            clauses.append(f"{pages} {'page' if pages == 1 else 'pages'} is a comfortable volume for me.")
        elif words:
            clauses.append(f"{words} words is a comfortable volume for me.")
        return clauses

    def _is_urgent(self, item: ListingItem, text: str) -> bool:
        lowered = text.lower()
        if any(k in lowered for k in URGENT_KEYWORDS):
            return True
        if item.deadline is None:
            return False
        try:
            remaining = (item.deadline - self.clock()).total_seconds() / 3600.0
        except TypeError:
            # naive vs aware datetimes
            return False
        return 0 <= remaining <= self.urgent_hours
