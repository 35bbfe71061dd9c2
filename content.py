"""Narrative content shown for each DISG trait."""
from __future__ import annotations

import re
from typing import Dict, List

DEFAULT_PARTICIPANT_NAME = "Teilnehmer"

TRAIT_PROFILES: Dict[str, Dict[str, object]] = {
    "D": {
        "name": "Rot",
        "type_name": "Dominant",
        "color": "#dc3545",
        "bg_color": "#fef2f2",
        "rgb": (220, 53, 69),
        "icon": "🔥",
        "description": (
            "Sie sind eine durchsetzungsstarke Persönlichkeit, die Herausforderungen liebt und schnelle "
            "Entscheidungen trifft. Sie bevorzugen direkte Kommunikation und ergebnisorientiertes Handeln."
        ),
        "traits": ["Ergebnisorientiert", "Entscheidungsfreudig", "Wettbewerbsorientiert", "Direkt", "Zielstrebig", "Selbstbewusst"],
        "strengths": ["Führungsstärke", "Entschlossenheit", "Problemlösung", "Schnelle Entscheidungen"],
        "challenges": ["Ungeduld", "Risikobereitschaft", "Dominanz", "Wenig Detailorientierung"],
        "communication_style": "direkte, ergebnisorientierte Kommunikation",
        "communication_focus": "Effizienz und schnelle Resultate",
        "communication_avoid": "lange Diskussionen ohne klares Ziel",
        "interaction_tips": "Seien Sie direkt und kommen Sie schnell zum Punkt. Vermeiden Sie unnötige Details.",
        "career_areas": ["Führungspositionen", "Unternehmertum", "Vertrieb und Business Development"],
        "work_environment": "Dynamisches Umfeld mit klaren Zielen, Autonomie und Herausforderungen",
        "key_strength": "Führung und Ergebnisorientierung",
    },
    "I": {
        "name": "Gelb",
        "type_name": "Initiativ",
        "color": "#facc15",
        "bg_color": "#fefce8",
        "rgb": (250, 204, 21),
        "icon": "⭐",
        "description": (
            "Sie sind eine kommunikative und enthusiastische Persönlichkeit, die Menschen begeistert und "
            "motiviert. Sie lieben soziale Interaktion und bringen positive Energie in Teams."
        ),
        "traits": ["Kommunikativ", "Enthusiastisch", "Optimistisch", "Überzeugend", "Kreativ", "Teamorientiert"],
        "strengths": ["Kommunikationsfähigkeit", "Begeisterungsfähigkeit", "Netzwerken", "Kreativität"],
        "challenges": ["Impulsivität", "Detailschwäche", "Überoptimismus", "Schwierigkeiten mit Routine"],
        "communication_style": "lebhafte, begeisternde Kommunikation",
        "communication_focus": "Beziehungen und positive Atmosphäre",
        "communication_avoid": "zu formelle oder trockene Kommunikation",
        "interaction_tips": "Seien Sie freundlich und zeigen Sie Interesse an der Person, nicht nur am Thema.",
        "career_areas": ["Marketing und PR", "Vertrieb und Kundenbetreuung", "Event Management"],
        "work_environment": "Soziales, dynamisches Umfeld mit viel Interaktion und Abwechslung",
        "key_strength": "Kommunikation und Begeisterung",
    },
    "S": {
        "name": "Grün",
        "type_name": "Stetig",
        "color": "#22c55e",
        "bg_color": "#f0fdf4",
        "rgb": (34, 197, 94),
        "icon": "🌿",
        "description": (
            "Sie sind eine zuverlässige und harmonieorientierte Persönlichkeit, die Stabilität schätzt und ein "
            "ausgezeichneter Teamplayer ist. Sie arbeiten geduldig und unterstützen andere."
        ),
        "traits": ["Zuverlässig", "Geduldig", "Loyal", "Unterstützend", "Harmoniebedürftig", "Beständig"],
        "strengths": ["Teamfähigkeit", "Zuverlässigkeit", "Geduld", "Loyalität"],
        "challenges": ["Veränderungsresistenz", "Konfliktscheu", "Schwierigkeiten Nein zu sagen", "Langsame Entscheidungen"],
        "communication_style": "ruhige, unterstützende Kommunikation",
        "communication_focus": "Harmonie und Zusammenarbeit",
        "communication_avoid": "Konfrontation und plötzliche Veränderungen",
        "interaction_tips": "Geben Sie Zeit für Entscheidungen und schaffen Sie eine sichere Atmosphäre.",
        "career_areas": ["Kundenservice", "Soziale Berufe", "Teamkoordination"],
        "work_environment": "Stabiles, harmonisches Umfeld mit klaren Strukturen und Teamarbeit",
        "key_strength": "Zuverlässigkeit und Teamarbeit",
    },
    "G": {
        "name": "Blau",
        "type_name": "Gewissenhaft",
        "color": "#3b82f6",
        "bg_color": "#eff6ff",
        "rgb": (59, 130, 246),
        "icon": "🎯",
        "description": (
            "Sie sind eine analytische und detailorientierte Persönlichkeit, die Wert auf Genauigkeit und "
            "Qualität legt. Sie arbeiten systematisch und bevorzugen klare Strukturen und Prozesse."
        ),
        "traits": ["Analytisch", "Präzise", "Systematisch", "Qualitätsbewusst", "Objektiv", "Zuverlässig"],
        "strengths": ["Hohe Qualitätsstandards", "Analytisches Denken", "Detailgenauigkeit", "Systematische Arbeitsweise"],
        "challenges": ["Perfektionismus", "Entscheidungszögerung", "Kritische Haltung", "Schwierigkeiten mit Veränderungen"],
        "communication_style": "sachliche, faktenbasierte Kommunikation",
        "communication_focus": "Genauigkeit und Qualität",
        "communication_avoid": "oberflächliche oder ungenaue Informationen",
        "interaction_tips": "Liefern Sie Fakten und Details. Geben Sie Zeit für gründliche Analyse.",
        "career_areas": ["Analyse und Forschung", "Qualitätsmanagement", "Technische Berufe"],
        "work_environment": "Strukturiertes Umfeld mit klaren Prozessen und hohen Qualitätsstandards",
        "key_strength": "Analyse und Qualität",
    },
}


def get_trait_profile(trait: str) -> Dict[str, object]:
    return TRAIT_PROFILES[trait]


def display_name_from_email(email: str | None) -> str:
    """Derive a friendly salutation name from an email address.

    ``max.mustermann92@example.com`` becomes ``Max Mustermann``.
    """
    if not email or "@" not in email:
        return DEFAULT_PARTICIPANT_NAME
    local_part = re.sub(r"\d+", "", email.split("@", 1)[0])
    parts: List[str] = [part for part in re.split(r"[._-]", local_part) if part]
    if not parts:
        return DEFAULT_PARTICIPANT_NAME
    return " ".join(part[:1].upper() + part[1:].lower() for part in parts)
