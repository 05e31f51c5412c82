"""
Bewertung von Prüfungsversuchen

Antworten werden unter dem Schlüssel ``"<section>-<index>"`` gespeichert.
Abschnitte: 0 = Multiple Choice Teil A, 1 = Multiple Choice Teil B,
2 = Free Response Teil A, 3 = Free Response Teil B.

Multiple Choice wird exakt verglichen. Free Response erhält nur eine
vorläufige Teilpunktzahl (höchstens 60 %) und wird zur manuellen Bewertung
markiert. Manuell vergebene Punkte ersetzen später die vorläufigen Werte
(``apply_manual_scores``).

Author: DSP Development Team
Version: 1.0.0
"""

import copy
import math
from typing import Any, Dict, List, Optional, Tuple

MC_DEFAULT_POINTS = 1
FR_DEFAULT_POINTS = 6
FR_AUTO_CREDIT = 0.6
FR_MIN_ANSWER_LENGTH = 10

SECTIONS: Tuple[Tuple[str, str, int, str], ...] = (
    ("multipleChoice", "partA", 0, "mc-part-a"),
    ("multipleChoice", "partB", 1, "mc-part-b"),
    ("freeResponse", "partA", 2, "fr-part-a"),
    ("freeResponse", "partB", 3, "fr-part-b"),
)


def question_key(section_index: int, question_index: int) -> str:
    return f"{section_index}-{question_index}"


def round_half_up(value: float) -> int:
    """Rundet .5 immer nach oben (7/12 -> 58)."""
    return int(math.floor(value + 0.5))


def percentage(part: float, total: float) -> int:
    if not total:
        return 0
    return round_half_up(part / total * 100)


def count_questions(questions: Any) -> int:
    """Anzahl aller Fragen über alle Abschnitte."""
    if not isinstance(questions, dict):
        return 0
    total = 0
    for group, part, _index, _section_id in SECTIONS:
        items = (questions.get(group) or {}).get(part)
        if isinstance(items, list):
            total += len(items)
    return total


def total_points_for(questions: Any) -> int:
    """Maximal erreichbare Punkte eines Fragensatzes."""
    if not isinstance(questions, dict):
        return 0
    total = 0
    for group, part, _index, _section_id in SECTIONS:
        items = (questions.get(group) or {}).get(part)
        if not isinstance(items, list):
            continue
        for question in items:
            if group == "multipleChoice":
                total += question.get("points") or MC_DEFAULT_POINTS
            else:
                total += question.get("totalPoints") or FR_DEFAULT_POINTS
    return total


def _score_multiple_choice(
    questions: List[Dict[str, Any]], answers: Dict[str, Any], section_index: int, section_id: str
) -> Dict[str, Any]:
    total_points = 0
    earned_points = 0
    results = []

    for question_index, question in enumerate(questions):
        student_answer = answers.get(question_key(section_index, question_index))
        correct_answer = question.get("correctAnswer")
        points = question.get("points") or MC_DEFAULT_POINTS
        total_points += points

        is_correct = student_answer is not None and student_answer == correct_answer
        if is_correct:
            earned_points += points

        results.append(
            {
                "questionIndex": question_index,
                "studentAnswer": student_answer,
                "correctAnswer": correct_answer,
                "isCorrect": is_correct,
                "pointsEarned": points if is_correct else 0,
                "totalPoints": points,
            }
        )

    return {
        "totalPoints": total_points,
        "earnedPoints": earned_points,
        "count": len(questions),
        "questions": results,
        "sectionId": section_id,
    }


def _count_sub_parts(question: Dict[str, Any]) -> int:
    parts = question.get("parts") or []
    total = sum(len(part.get("subParts") or []) for part in parts if isinstance(part, dict))
    return total or 1


def _score_free_response(
    questions: List[Dict[str, Any]], answers: Dict[str, Any], section_index: int, section_id: str
) -> Dict[str, Any]:
    total_points = 0
    earned_points = 0
    results = []

    for question_index, question in enumerate(questions):
        student_answer = answers.get(question_key(section_index, question_index))
        points = question.get("totalPoints") or FR_DEFAULT_POINTS
        total_points += points

        question_score = 0
        if isinstance(student_answer, dict) and student_answer:
            answered = sum(
                1
                for value in student_answer.values()
                if value and len(str(value).strip()) > FR_MIN_ANSWER_LENGTH
            )
            question_score = round_half_up(
                answered / _count_sub_parts(question) * points * FR_AUTO_CREDIT
            )
        earned_points += question_score

        results.append(
            {
                "questionIndex": question_index,
                "studentAnswer": student_answer,
                "pointsEarned": question_score,
                "totalPoints": points,
                "needsManualGrading": True,
            }
        )

    return {
        "totalPoints": total_points,
        "earnedPoints": earned_points,
        "count": len(questions),
        "questions": results,
        "sectionId": section_id,
        "needsManualGrading": True,
    }


def score_exam(questions: Any, answers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bewertet die Antworten eines Versuchs.

    Args:
        questions: Fragensatz der Prüfung
        answers: Antworten des Studenten

    Returns:
        Dictionary mit ``percentage``, ``pointsEarned``, ``totalPoints`` und
        ``breakdown`` (pro Fragetyp und pro Abschnitt)
    """
    breakdown: Dict[str, Any] = {
        "multipleChoice": {"total": 0, "earned": 0, "count": 0},
        "freeResponse": {"total": 0, "earned": 0, "count": 0},
        "sections": {},
    }
    total_points = 0
    earned_points = 0

    if isinstance(questions, dict):
        for group, part, section_index, section_id in SECTIONS:
            items = (questions.get(group) or {}).get(part)
            if not isinstance(items, list):
                continue
            scorer = _score_multiple_choice if group == "multipleChoice" else _score_free_response
            result = scorer(items, answers, section_index, section_id)

            total_points += result["totalPoints"]
            earned_points += result["earnedPoints"]
            breakdown[group]["total"] += result["totalPoints"]
            breakdown[group]["earned"] += result["earnedPoints"]
            breakdown[group]["count"] += result["count"]
            breakdown["sections"][section_id] = result

    return {
        "percentage": percentage(earned_points, total_points),
        "pointsEarned": earned_points,
        "totalPoints": total_points,
        "breakdown": breakdown,
    }


def iter_question_results(breakdown: Dict[str, Any]):
    """Liefert ``(key, group, result)`` für jede bewertete Frage."""
    sections = (breakdown or {}).get("sections") or {}
    for group, _part, section_index, section_id in SECTIONS:
        section = sections.get(section_id)
        if not section:
            continue
        for result in section.get("questions") or []:
            yield question_key(section_index, result["questionIndex"]), group, result


def find_question_result(breakdown: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    for result_key, _group, result in iter_question_results(breakdown):
        if result_key == key:
            return result
    return None


def pending_manual_grading(breakdown: Dict[str, Any]) -> int:
    """Anzahl der Fragen, die noch manuell bewertet werden müssen."""
    return sum(
        1
        for _key, _group, result in iter_question_results(breakdown)
        if result.get("needsManualGrading")
    )


def apply_manual_scores(
    breakdown: Dict[str, Any], manual_scores: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Übernimmt manuell vergebene Punkte in eine Aufschlüsselung.

    Args:
        breakdown: Aufschlüsselung aus ``score_exam``
        manual_scores: ``{"<section>-<index>": {"score": int, "feedback": str}}``

    Returns:
        Dictionary wie ``score_exam`` plus ``pendingQuestions``
    """
    breakdown = copy.deepcopy(breakdown)
    sections = breakdown.get("sections") or {}
    for group in ("multipleChoice", "freeResponse"):
        breakdown[group]["earned"] = 0

    total_points = 0
    earned_points = 0
    for group, _part, section_index, section_id in SECTIONS:
        section = sections.get(section_id)
        if not section:
            continue

        section_earned = 0
        for result in section["questions"]:
            grade = manual_scores.get(question_key(section_index, result["questionIndex"]))
            if grade is not None:
                result["pointsEarned"] = grade["score"]
                result["needsManualGrading"] = False
                result["feedback"] = grade.get("feedback", "")
                if group == "multipleChoice":
                    result["isCorrect"] = grade["score"] == result["totalPoints"]
            section_earned += result["pointsEarned"]

        section["earnedPoints"] = section_earned
        if "needsManualGrading" in section:
            section["needsManualGrading"] = any(
                q.get("needsManualGrading") for q in section["questions"]
            )
        breakdown[group]["earned"] += section_earned
        total_points += section["totalPoints"]
        earned_points += section_earned

    return {
        "percentage": percentage(earned_points, total_points),
        "pointsEarned": earned_points,
        "totalPoints": total_points,
        "breakdown": breakdown,
        "pendingQuestions": pending_manual_grading(breakdown),
    }
