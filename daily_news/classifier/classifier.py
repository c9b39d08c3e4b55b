"""
Category Classifier

Scores an article title against a static keyword table and picks one
Category. A keyword that appears as a whole word (bounded by spaces or the
ends of the title) is worth 2 points; a bare substring match is worth 1.
The highest total wins, ties go to the category declared first, and a title
that matches nothing is General.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from daily_news.models.news import Category

logger = logging.getLogger(__name__)

KeywordTable = tuple[tuple[Category, tuple[str, ...]], ...]

CATEGORY_KEYWORDS: KeywordTable = (
    (Category.POLITICS, (
        "government", "minister", "parliament", "election", "political", "party", "congress", "bjp",
        "vote", "democracy", "policy", "law", "constitution", "supreme court", "high court",
        "prime minister", "president", "governor", "chief minister", "cabinet", "opposition",
        "rally", "campaign", "manifesto", "coalition", "alliance",
    )),
    (Category.BUSINESS, (
        "business", "economy", "market", "stock", "shares", "profit", "loss", "revenue", "company",
        "corporate", "startup", "investment", "bank", "finance", "rupee", "dollar", "trading",
        "nifty", "sensex", "ipo", "merger", "acquisition", "earnings", "quarterly", "sales",
        "ceo", "cfo", "board", "dividend", "inflation", "gdp", "fiscal", "budget",
    )),
    (Category.TECHNOLOGY, (
        "technology", "tech", "ai", "artificial intelligence", "machine learning", "software",
        "app", "mobile", "smartphone", "computer", "internet", "digital", "cyber", "data",
        "cloud", "blockchain", "cryptocurrency", "bitcoin", "startup", "innovation",
        "google", "apple", "microsoft", "facebook", "meta", "twitter", "instagram",
        "programming", "coding", "developer", "algorithm", "automation",
    )),
    (Category.SPORTS, (
        "cricket", "football", "hockey", "tennis", "badminton", "kabaddi", "wrestling",
        "boxing", "athletics", "olympics", "world cup", "ipl", "tournament", "match",
        "player", "team", "coach", "victory", "defeat", "score", "goal", "run",
        "wicket", "stadium", "championship", "league", "fifa", "icc", "bcci",
    )),
    (Category.ENTERTAINMENT, (
        "bollywood", "hollywood", "movie", "film", "actor", "actress", "director", "producer",
        "music", "song", "album", "concert", "show", "celebrity", "star", "cinema",
        "box office", "release", "trailer", "awards", "oscar", "filmfare", "television",
        "tv", "serial", "web series", "netflix", "amazon prime", "ott",
    )),
    (Category.HEALTH, (
        "health", "medical", "doctor", "hospital", "medicine", "treatment", "disease",
        "covid", "corona", "virus", "vaccine", "vaccination", "pandemic", "symptoms",
        "patient", "healthcare", "wellness", "fitness", "diet", "nutrition",
        "surgery", "therapy", "mental health", "depression", "anxiety",
    )),
    (Category.SCIENCE, (
        "science", "research", "study", "scientist", "discovery", "experiment", "space",
        "nasa", "isro", "satellite", "rocket", "mars", "moon", "planet", "climate",
        "environment", "pollution", "global warming", "renewable energy", "solar",
        "nuclear", "physics", "chemistry", "biology", "genetics", "dna",
    )),
    (Category.EDUCATION, (
        "education", "school", "college", "university", "student", "teacher", "exam",
        "result", "admission", "degree", "course", "curriculum", "academic",
        "scholarship", "fee", "education policy", "neet", "jee", "upsc", "cbse",
        "icse", "board", "class", "grade", "learning", "skill development",
    )),
    (Category.CRIME, (
        "crime", "murder", "theft", "robbery", "fraud", "scam", "arrest", "police",
        "investigation", "court", "jail", "prison", "criminal", "accused", "victim",
        "fir", "case", "trial", "verdict", "sentence", "bail", "custody",
        "cybercrime", "terrorism", "rape", "assault", "kidnapping",
    )),
    (Category.INTERNATIONAL, (
        "international", "global", "world", "foreign", "country", "nation", "border",
        "diplomatic", "embassy", "trade", "export", "import", "agreement", "treaty",
        "summit", "meeting", "visit", "relations", "pakistan", "china", "usa",
        "uk", "russia", "europe", "asia", "africa", "un", "united nations",
    )),
    (Category.ENVIRONMENT, (
        "environment", "climate", "pollution", "air quality", "water", "forest",
        "wildlife", "conservation", "green", "sustainable", "renewable", "carbon",
        "emission", "global warming", "weather", "rain", "drought", "flood",
        "cyclone", "earthquake", "natural disaster", "biodiversity", "ecology",
    )),
    (Category.ECONOMY, (
        "economy", "economic", "inflation", "deflation", "interest rate", "fiscal",
        "monetary", "budget", "tax", "gst", "gdp", "growth", "recession",
        "recovery", "employment", "unemployment", "jobs", "wages", "salary",
        "income", "poverty", "wealth", "development", "industrial",
    )),
    (Category.DEFENSE, (
        "defense", "defence", "military", "army", "navy", "air force", "soldier",
        "officer", "war", "conflict", "security", "border", "weapon", "missile",
        "fighter jet", "submarine", "tank", "terrorism", "insurgency",
        "peacekeeping", "operation", "strategic", "national security",
    )),
)


def _keyword_points(title: str, keyword: str) -> int:
    """Points one keyword earns against an already lower-cased title."""
    if keyword not in title:
        return 0
    if (
        title == keyword
        or title.startswith(keyword + " ")
        or title.endswith(" " + keyword)
        or f" {keyword} " in title
    ):
        return 2
    return 1


class CategoryClassifier:
    """
    Keyword classifier over an immutable (category, keywords) table.

    Instances are stateless after construction; classify() is a pure
    function of the title.
    """

    def __init__(self, table: KeywordTable = CATEGORY_KEYWORDS) -> None:
        self._table: KeywordTable = tuple(
            (category, tuple(k.lower() for k in keywords))
            for category, keywords in table
        )

    @property
    def categories(self) -> tuple[Category, ...]:
        """Categories that have keywords, in declaration order."""
        return tuple(category for category, _ in self._table)

    def keywords(self, category: Category) -> tuple[str, ...]:
        for cat, words in self._table:
            if cat is category:
                return words
        return ()

    def scores(self, title: Optional[str]) -> dict[Category, int]:
        """Score every category for a title. Empty input scores zero everywhere."""
        result = {category: 0 for category, _ in self._table}
        if not title or not isinstance(title, str):
            return result

        text = title.lower()
        for category, words in self._table:
            result[category] += sum(_keyword_points(text, w) for w in words)
        return result

    def classify(self, title: Optional[str]) -> Category:
        """Return the best-scoring category for a title, General if nothing matches."""
        best = Category.GENERAL
        best_score = 0
        for category, score in self.scores(title).items():
            if score > best_score:
                best, best_score = category, score
        return best

    def with_keywords(
        self, category: Category, keywords: Iterable[str]
    ) -> "CategoryClassifier":
        """
        Return a new classifier with extra keywords appended to one category.

        A category not yet in the table is added at the end, so it loses ties
        to every declared category.
        """
        extra = tuple(keywords)
        table = []
        found = False
        for cat, words in self._table:
            if cat is category:
                words = words + extra
                found = True
            table.append((cat, words))
        if not found:
            table.append((category, extra))

        logger.debug(
            f"Extended {category.value} with {len(extra)} keyword(s)",
            extra={"category": category.value},
        )
        return CategoryClassifier(tuple(table))


_default_classifier = CategoryClassifier()


def classify(title: Optional[str]) -> Category:
    """Classify a title with the default keyword table."""
    return _default_classifier.classify(title)
