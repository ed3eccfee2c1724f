from typing import List

# Languages offered as quick picks for the language filter.
POPULAR_LANGUAGES = (
    "JavaScript",
    "TypeScript",
    "Python",
    "Java",
    "Go",
    "Rust",
    "C++",
    "C",
    "C#",
    "Ruby",
    "PHP",
    "Swift",
    "Kotlin",
    "Scala",
    "Shell",
)


def get_popular_languages() -> List[str]:
    return list(POPULAR_LANGUAGES)
