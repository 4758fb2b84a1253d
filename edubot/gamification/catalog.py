"""
Activity and question catalogs

Static catalogs served to the client and used to resolve activity points and
question categories when events are recorded.
"""

from typing import Dict, Iterable, List, Optional, Union
import logging

from edubot.models.catalog import Activity, ActivityType, Question, StudentLevel
from edubot.models.event import QuestionCategory

logger = logging.getLogger(__name__)


ACTIVITIES: List[Activity] = [
    Activity(
        id="1",
        title="Quiz de Matemáticas",
        description="Responde 10 preguntas de matemáticas básicas",
        points=50,
        type=ActivityType.QUIZ,
    ),
    Activity(
        id="2",
        title="Evento de Ciencia",
        description="Asiste al evento de ciencias en el auditorio",
        points=100,
        type=ActivityType.EVENT,
        location="Auditorio Principal",
    ),
    Activity(
        id="3",
        title="Interacción Diaria",
        description="Usa el chatbot por primera vez hoy",
        points=25,
        type=ActivityType.INTERACTION,
    ),
]


QUESTIONS: List[Question] = [
    # University
    Question(id="1", text="¿Cuál es tu área de estudio principal?",
             category=QuestionCategory.ACADEMIC, level=StudentLevel.UNIVERSITY, points=10),
    Question(id="2", text="¿Qué carrera te interesa más?",
             category=QuestionCategory.CAREER, level=StudentLevel.UNIVERSITY, points=15),
    Question(id="3", text="¿Cómo te sientes con tu rendimiento académico?",
             category=QuestionCategory.EMOTIONAL, level=StudentLevel.UNIVERSITY, points=5),
    Question(id="4", text="¿En qué materias necesitas más ayuda?",
             category=QuestionCategory.REINFORCEMENT, level=StudentLevel.UNIVERSITY, points=10),
    Question(id="5", text="¿Qué te motiva a estudiar?",
             category=QuestionCategory.VOCATIONAL, level=StudentLevel.UNIVERSITY, points=12),
    # High school
    Question(id="6", text="¿Cuál es tu materia favorita?",
             category=QuestionCategory.ACADEMIC, level=StudentLevel.HIGHSCHOOL, points=8),
    Question(id="7", text="¿Qué carrera te gustaría estudiar?",
             category=QuestionCategory.CAREER, level=StudentLevel.HIGHSCHOOL, points=12),
    Question(id="8", text="¿Cómo manejas el estrés de los exámenes?",
             category=QuestionCategory.EMOTIONAL, level=StudentLevel.HIGHSCHOOL, points=6),
    Question(id="9", text="¿En qué materias tienes más dificultades?",
             category=QuestionCategory.REINFORCEMENT, level=StudentLevel.HIGHSCHOOL, points=8),
    Question(id="10", text="¿Qué te inspira a seguir estudiando?",
             category=QuestionCategory.VOCATIONAL, level=StudentLevel.HIGHSCHOOL, points=10),
]

_ACTIVITIES_BY_ID: Dict[str, Activity] = {a.id: a for a in ACTIVITIES}
_QUESTIONS_BY_ID: Dict[str, Question] = {q.id: q for q in QUESTIONS}


def get_activities(active_only: bool = False) -> List[Activity]:
    """All catalog activities"""
    if active_only:
        return [a for a in ACTIVITIES if a.is_active]
    return list(ACTIVITIES)


def get_activity(activity_id: str) -> Optional[Activity]:
    return _ACTIVITIES_BY_ID.get(activity_id)


def get_question(question_id: str) -> Optional[Question]:
    return _QUESTIONS_BY_ID.get(question_id)


def get_questions(level: Optional[Union[StudentLevel, str]] = None) -> List[Question]:
    """Questions for an education level (all levels when None)"""
    if level is None:
        return list(QUESTIONS)
    level = StudentLevel(level)
    return [q for q in QUESTIONS if q.level == level]


def get_questions_by_category(
    category: Union[QuestionCategory, str],
    level: Optional[Union[StudentLevel, str]] = None,
) -> List[Question]:
    category = QuestionCategory(category)
    return [q for q in get_questions(level) if q.category == category]


def get_suggested_questions(
    level: Union[StudentLevel, str],
    answered_ids: Iterable[str] = (),
    limit: int = 3,
) -> List[Question]:
    """
    Unanswered questions for the level, one per category first

    Spreads suggestions across categories so a student is not asked three
    emotional questions in a row.
    """
    answered = set(answered_ids)
    pending = [q for q in get_questions(level) if q.id not in answered]

    suggestions: List[Question] = []
    seen_categories = set()
    for question in pending:
        if question.category not in seen_categories:
            suggestions.append(question)
            seen_categories.add(question.category)

    for question in pending:
        if question not in suggestions:
            suggestions.append(question)

    return suggestions[:limit]
