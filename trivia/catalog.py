import json
import logging
from typing import Dict, List, Tuple

from trivia.models import Question


logger = logging.getLogger(__name__)

FALLBACK_QUESTIONS = {
    'Fallback Questions': [
        {'question': 'What is 2 + 2?', 'options': ['3', '4', '5', '6'], 'answer': '4'},
        {'question': 'What is the capital of France?', 'options': ['Berlin', 'Madrid', 'Paris', 'Rome'], 'answer': 'Paris'},
    ]
}


class QuestionCatalog:
    """Read-only mapping of category name to its questions, in file order."""

    def __init__(self, categories: Dict[str, List[Question]]):
        self._categories = {key: tuple(questions) for key, questions in categories.items()}

    @classmethod
    def from_dict(cls, data) -> 'QuestionCatalog':
        if not isinstance(data, dict):
            raise ValueError('question file must map category names to question lists')
        categories = {}
        for key, records in data.items():
            if not isinstance(records, list):
                logger.warning(f"[catalog-skip] category={key!r} is not a list")
                continue
            questions = []
            for position, record in enumerate(records):
                try:
                    questions.append(Question.from_dict(record))
                except ValueError as exc:
                    logger.warning(f"[catalog-skip] category={key!r} index={position} reason={exc}")
            categories[key] = questions
        return cls(categories)

    @classmethod
    def load(cls, path) -> 'QuestionCatalog':
        """Load the catalog from a JSON file, falling back to built-in questions.

        The server must come up even with a broken question file, so missing,
        unreadable, malformed or empty files fall back and log an error.
        """
        try:
            with open(path, encoding='utf-8') as fh:
                catalog = cls.from_dict(json.load(fh))
        except (OSError, ValueError) as exc:
            logger.error(f"[catalog-fallback] path={path} error={exc}")
            return cls.from_dict(FALLBACK_QUESTIONS)
        if not catalog.categories():
            logger.error(f"[catalog-fallback] path={path} error=no categories found")
            return cls.from_dict(FALLBACK_QUESTIONS)
        logger.info(f"[catalog-loaded] categories={', '.join(catalog.categories())}")
        return catalog

    def categories(self) -> List[str]:
        return list(self._categories)

    def questions_for(self, key: str) -> Tuple[Question, ...]:
        return self._categories[key]

    def counts(self) -> Dict[str, int]:
        return {key: len(questions) for key, questions in self._categories.items()}

    def __contains__(self, key) -> bool:
        return key in self._categories

    def __len__(self) -> int:
        return len(self._categories)
