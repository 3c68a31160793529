import json

from trivia.catalog import FALLBACK_QUESTIONS, QuestionCatalog


def _write(tmp_path, data):
    path = tmp_path / 'questions.json'
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding='utf-8')
    return str(path)


def test_loads_categories_in_file_order(catalog):
    assert catalog.categories() == ['Geography', 'Science', 'Empty']
    assert catalog.counts() == {'Geography': 3, 'Science': 2, 'Empty': 0}
    assert 'Geography' in catalog
    assert 'geography' not in catalog


def test_question_records(catalog):
    question = catalog.questions_for('Science')[0]
    assert question.prompt == 'What is the chemical symbol for gold?'
    assert question.answer in question.options


def test_invalid_records_are_skipped(tmp_path):
    path = _write(tmp_path, {
        'Mixed': [
            {'question': 'Good?', 'options': ['yes', 'no'], 'answer': 'yes'},
            {'question': 'No answer?', 'options': ['a', 'b'], 'answer': 'c'},
            {'question': 'Twice?', 'options': ['a', 'a'], 'answer': 'a'},
            'not a record',
        ],
        'Broken': 'nope',
    })
    catalog = QuestionCatalog.load(path)
    assert catalog.counts() == {'Mixed': 1}


def test_missing_file_falls_back(tmp_path):
    catalog = QuestionCatalog.load(str(tmp_path / 'missing.json'))
    assert catalog.categories() == list(FALLBACK_QUESTIONS)


def test_malformed_file_falls_back(tmp_path):
    catalog = QuestionCatalog.load(_write(tmp_path, '{not json'))
    assert catalog.categories() == list(FALLBACK_QUESTIONS)


def test_empty_file_falls_back(tmp_path):
    catalog = QuestionCatalog.load(_write(tmp_path, {}))
    assert catalog.categories() == list(FALLBACK_QUESTIONS)
    assert len(catalog) == 1
