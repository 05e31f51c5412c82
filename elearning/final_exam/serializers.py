from typing import Any, Dict

from rest_framework import serializers

# Angepasste Importe
from .models import UnitExam, ExamAttempt, ExamType
from ..services.scoring import SECTIONS, count_questions, percentage, total_points_for

FROZEN_FIELDS = ("questions", "passing_score", "time_limit")
STRUCTURE_GROUPS = ("multipleChoice", "freeResponse")
STRUCTURE_PARTS = ("partA", "partB")


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))


def is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_question(group: str, question: Dict[str, Any]) -> None:
    """Punkte und Teilaufgaben einer einzelnen Frage prüfen."""
    points_key = "points" if group == "multipleChoice" else "totalPoints"
    points = question.get(points_key)
    if points is not None and not is_positive_int(points):
        raise serializers.ValidationError(
            f"Question {points_key} must be a positive integer"
        )
    if group != "freeResponse":
        return

    parts = question.get("parts")
    if parts is None:
        return
    if not isinstance(parts, list) or not all(isinstance(p, dict) for p in parts):
        raise serializers.ValidationError("Free response parts must be a list of objects")
    for part in parts:
        sub_parts = part.get("subParts")
        if sub_parts is not None and not isinstance(sub_parts, list):
            raise serializers.ValidationError("Free response subParts must be a list")


class UnitExamSerializer(serializers.ModelSerializer):
    """
    Prüfung einer Unit (Admin-Sicht).

    - mindestens eine Frage
    - ``passingScore`` wird auf 0..100, ``maxAttempts`` auf 1..10 begrenzt
    - ``availableFrom`` muss vor ``availableUntil`` liegen
    - nach dem ersten abgegebenen Versuch sind Fragen, Bestehensgrenze und
      Zeitlimit gesperrt
    """

    unitId = serializers.IntegerField(source="unit_id", read_only=True)
    examType = serializers.ChoiceField(
        source="exam_type", choices=ExamType.choices, required=False
    )
    questions = serializers.JSONField()
    structure = serializers.JSONField(required=False, allow_null=True)
    passingScore = serializers.IntegerField(source="passing_score", required=False)
    totalPoints = serializers.IntegerField(source="total_points", min_value=0, required=False)
    timeLimit = serializers.IntegerField(
        source="time_limit", min_value=1, required=False, allow_null=True
    )
    order = serializers.IntegerField(min_value=0, required=False)
    maxAttempts = serializers.IntegerField(source="max_attempts", required=False)
    availableFrom = serializers.DateTimeField(
        source="available_from", required=False, allow_null=True
    )
    availableUntil = serializers.DateTimeField(
        source="available_until", required=False, allow_null=True
    )
    isPublished = serializers.BooleanField(source="is_published", required=False)
    stats = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = UnitExam
        fields = [
            "id",
            "unitId",
            "title",
            "description",
            "instructions",
            "examType",
            "questions",
            "structure",
            "passingScore",
            "totalPoints",
            "timeLimit",
            "order",
            "maxAttempts",
            "availableFrom",
            "availableUntil",
            "isPublished",
            "stats",
            "createdAt",
            "updatedAt",
        ]

    def validate_title(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title is required")
        return value

    def validate_questions(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Questions must be a valid object")
        for group, part, _index, _section_id in SECTIONS:
            section = value.get(group)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise serializers.ValidationError("Invalid questions structure")
            items = section.get(part)
            if items is not None and not (
                isinstance(items, list) and all(isinstance(q, dict) for q in items)
            ):
                raise serializers.ValidationError("Invalid questions structure")
            for question in items or []:
                validate_question(group, question)
        if count_questions(value) == 0:
            raise serializers.ValidationError("At least one question is required")
        return value

    def validate_structure(self, value):
        # Abschnitte mit optionalem Zeitlimit (Minuten) je Teil
        if value is None:
            return value
        if not isinstance(value, dict):
            raise serializers.ValidationError("Structure must be a valid object")
        for group in STRUCTURE_GROUPS:
            section = value.get(group)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise serializers.ValidationError("Invalid exam structure")
            for part in STRUCTURE_PARTS:
                part_settings = section.get(part)
                if part_settings is None:
                    continue
                if not isinstance(part_settings, dict):
                    raise serializers.ValidationError("Invalid exam structure")
                time_limit = part_settings.get("timeLimit")
                if time_limit is not None and not is_positive_int(time_limit):
                    raise serializers.ValidationError(
                        "Section timeLimit must be a positive integer"
                    )
        return value

    def validate_passingScore(self, value: int) -> int:
        return clamp(value, 0, 100)

    def validate_maxAttempts(self, value: int) -> int:
        return clamp(value, 1, 10)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        instance = self.instance

        available_from = attrs.get(
            "available_from", instance.available_from if instance else None
        )
        available_until = attrs.get(
            "available_until", instance.available_until if instance else None
        )
        if available_from and available_until and available_from >= available_until:
            raise serializers.ValidationError(
                "Available from date must be before available until date"
            )

        if instance is not None and instance.has_completed_attempts():
            changed = [
                name
                for name in FROZEN_FIELDS
                if name in attrs and attrs[name] != getattr(instance, name)
            ]
            if changed:
                raise serializers.ValidationError(
                    "Cannot change questions, passing score or time limit "
                    "after students have completed this exam"
                )

        if "questions" in attrs and not attrs.get("total_points"):
            attrs["total_points"] = total_points_for(attrs["questions"])
        return attrs

    def get_stats(self, obj) -> Dict[str, Any]:
        attempts = [a for a in obj.attempts.all() if a.completed_at is not None]
        passed = sum(1 for a in attempts if a.passed)
        scores = [a.score or 0 for a in attempts]
        questions = obj.questions if isinstance(obj.questions, dict) else {}
        multiple_choice = count_questions({"multipleChoice": questions.get("multipleChoice")})
        free_response = count_questions({"freeResponse": questions.get("freeResponse")})
        return {
            "totalAttempts": len(attempts),
            "passedAttempts": passed,
            "passRate": percentage(passed, len(attempts)),
            "averageScore": round(sum(scores) / len(scores), 2) if scores else 0,
            "questionCounts": {
                "total": multiple_choice + free_response,
                "multipleChoice": multiple_choice,
                "freeResponse": free_response,
            },
        }


class ExamAttemptStateSerializer(serializers.ModelSerializer):
    """Zwischenstand eines Versuchs für das Fortsetzen im Client."""

    currentSection = serializers.IntegerField(source="current_section")
    currentQuestion = serializers.IntegerField(source="current_question")
    timeRemaining = serializers.IntegerField(source="time_remaining", allow_null=True)
    startedAt = serializers.DateTimeField(source="started_at")
    lastSavedAt = serializers.DateTimeField(source="last_saved_at", allow_null=True)

    class Meta:
        model = ExamAttempt
        fields = [
            "id",
            "answers",
            "currentSection",
            "currentQuestion",
            "timeRemaining",
            "status",
            "startedAt",
            "lastSavedAt",
        ]
        read_only_fields = fields


class GradeQuestionSerializer(serializers.Serializer):
    """Manuelle Punkte für eine Frage, adressiert wie die Antworten."""

    questionKey = serializers.RegexField(
        r"^\d+-\d+$",
        error_messages={"invalid": "Question key must look like '<section>-<index>'"},
    )
    score = serializers.IntegerField()
    feedback = serializers.CharField(required=False, allow_blank=True, default="")


class CompleteGradingSerializer(serializers.Serializer):
    feedback = serializers.CharField(required=False, allow_blank=True, default="")
    needsReview = serializers.BooleanField(required=False, default=False)
