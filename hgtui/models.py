from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hgtui.errors import InvalidCategory

NA = "N/A"
CATEGORY_SUFFIXES = (" 项目", " Project")


def strip_category_suffix(raw: str) -> str:
    text = raw.strip()
    for suffix in CATEGORY_SUFFIXES:
        if text.endswith(suffix):
            return text[: -len(suffix)].strip()
    return text


@dataclass(frozen=True)
class Project:
    name: str
    volume: int
    category: str
    url: str
    description: str
    star: str = NA
    watch: str = NA
    fork: str = NA

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", strip_category_suffix(self.category))


class Category(Enum):
    JAVA = "Java"
    PYTHON = "Python"
    JAVASCRIPT = "JavaScript"
    RUST = "Rust"
    C = "C"
    CPP = "C++"
    CSHARP = "C#"
    OBJECTIVE_C = "Objective-C"
    CSS = "CSS"
    GO = "Go"
    PHP = "PHP"
    RUBY = "Ruby"
    SWIFT = "Swift"
    KOTLIN = "Kotlin"
    MACHINE_LEARNING = "MachineLearning"
    BOOK = "Book"
    OTHER = "Other"

    @classmethod
    def parse(cls, alias: str) -> Category:
        category = CATEGORY_ALIASES.get(alias.strip().lower())
        if category is None:
            accepted = ", ".join(sorted(CATEGORY_ALIASES))
            raise InvalidCategory(f"Unknown category '{alias}'. Try one of: {accepted}")
        return category

    @property
    def label(self) -> str:
        return CATEGORY_LABELS.get(self, self.value)

    @property
    def localized(self) -> str:
        return CATEGORY_LOCALIZED.get(self, f"{self.label} 项目")


CATEGORY_ALIASES: dict[str, Category] = {
    "java": Category.JAVA,
    "python": Category.PYTHON,
    "py": Category.PYTHON,
    "javascript": Category.JAVASCRIPT,
    "js": Category.JAVASCRIPT,
    "rust": Category.RUST,
    "c": Category.C,
    "c++": Category.CPP,
    "cpp": Category.CPP,
    "c#": Category.CSHARP,
    "cs": Category.CSHARP,
    "csharp": Category.CSHARP,
    "objectc": Category.OBJECTIVE_C,
    "objective-c": Category.OBJECTIVE_C,
    "oc": Category.OBJECTIVE_C,
    "css": Category.CSS,
    "go": Category.GO,
    "golang": Category.GO,
    "php": Category.PHP,
    "ruby": Category.RUBY,
    "swift": Category.SWIFT,
    "kotlin": Category.KOTLIN,
    "ml": Category.MACHINE_LEARNING,
    "ai": Category.MACHINE_LEARNING,
    "machinelearning": Category.MACHINE_LEARNING,
    "book": Category.BOOK,
    "other": Category.OTHER,
}

CATEGORY_LABELS: dict[Category, str] = {
    Category.OBJECTIVE_C: "Object-C",
    Category.CSS: "Css",
    Category.JAVASCRIPT: "Javascript",
    Category.MACHINE_LEARNING: "机器学习",
    Category.BOOK: "开源书籍",
    Category.OTHER: "其他",
}

# Site paths for these have no " 项目" suffix.
CATEGORY_LOCALIZED: dict[Category, str] = {
    Category.MACHINE_LEARNING: "机器学习",
    Category.BOOK: "开源书籍",
    Category.OTHER: "其他",
}

# Display colors keyed by the stripped category text found on the pages.
CATEGORY_COLORS: dict[str, str] = {
    "C": "rgb(85,85,85)",
    "C++": "rgb(243,75,125)",
    "C#": "rgb(23,134,1)",
    "Css": "rgb(86,62,124)",
    "CSS": "rgb(86,62,124)",
    "Java": "rgb(175,114,25)",
    "Javascript": "rgb(240,224,90)",
    "JavaScript": "rgb(240,224,90)",
    "Go": "rgb(1,173,216)",
    "Rust": "rgb(221,163,132)",
    "Python": "rgb(53,114,165)",
    "PHP": "rgb(79,93,149)",
    "Object-C": "rgb(67,142,255)",
    "Objective-C": "rgb(67,142,255)",
    "Ruby": "rgb(112,20,21)",
    "Swift": "rgb(240,81,55)",
    "Kotlin": "rgb(169,123,255)",
}


class SearchMode(Enum):
    NORMAL = "normal"
    VOLUME = "volume"
    CATEGORY = "category"

    @classmethod
    def from_query(cls, text: str) -> SearchMode:
        if text.startswith("#"):
            return cls.VOLUME
        if text.startswith("$"):
            return cls.CATEGORY
        return cls.NORMAL


class AppMode(Enum):
    SEARCH = "search"
    VIEW = "view"
    POPUP = "popup"
    DETAIL = "detail"


class MessageLevel(Enum):
    ERROR = "error"
    WARN = "warn"
    TIPS = "tips"


@dataclass(frozen=True)
class Message:
    level: MessageLevel
    text: str


@dataclass(frozen=True)
class GlobalInfo:
    max_volume: int
    project_count: int
    star_count: str
