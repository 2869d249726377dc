
RUBRICS = {
    "writing": {"version": "ielts-v1", "scale": {"min": 0.0, "max": 9.0, "step": 0.5}, "criteria": [
        {"id": "task_achievement", "label": "Task Achievement", "desc": "Addresses all parts of the task with a clear position"},
        {"id": "coherence_cohesion", "label": "Coherence & Cohesion", "desc": "Logical organisation and paragraphing, cohesive devices"},
        {"id": "lexical_resource", "label": "Lexical Resource", "desc": "Range and precision of vocabulary"},
        {"id": "grammar_accuracy", "label": "Grammatical Range & Accuracy", "desc": "Variety of structures, error frequency"},
    ]},
}

CRITERIA_IDS: tuple[str, ...] = tuple(c["id"] for c in RUBRICS["writing"]["criteria"])
