"""
Fixed literals and instruction text for the recommendation letter.
"""
from __future__ import annotations

from typing import Any, Dict

from .models import Document

SALUTATION = "To Whom It May Concern"
OPENING_LINE = "It is with great enthusiasm that I recommend [Student Name]..."
FIRST_TRANSITION = "On the one hand,"
SECOND_TRANSITION = "On the other hand,"
CONCLUSION_TRANSITION = "Given"
SIGN_OFF = "Yours truly,"

GENERATION_REQUEST = "Generate the recommendation letter and analysis based on the system instructions."

SESSION_GREETING = "I have generated the letter based on your inputs. How can I help you refine it?"
EMPTY_REPLY_APOLOGY = "I'm sorry, I couldn't process that."
REFINEMENT_ERROR_APOLOGY = "Sorry, I encountered an error processing your request."


LETTER_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        Document.FIELD_MAP["logic_draft"]: {
            "type": "STRING",
            "description": (
                "A verbatim draft of the logic flow in Chinese, explaining how the student's "
                "projects led to challenges and demonstrated qualities."
            ),
        },
        Document.FIELD_MAP["primary_text"]: {
            "type": "STRING",
            "description": "The full English recommendation letter (~350 words).",
        },
        Document.FIELD_MAP["critique"]: {
            "type": "STRING",
            "description": (
                "A critique of the input material, checking for logical gaps or grammatical "
                "nuances to be aware of."
            ),
        },
    },
    "required": list(Document.FIELD_MAP.values()),
}


def build_generation_instruction(subject_context: str, source_material: str) -> str:
    return f"""
You are an expert academic writer specializing in recommendation letters.
Your task is to take Chinese input regarding a professor and a student's projects and write a professional English recommendation letter.

STRICT STRUCTURE REQUIREMENTS:
1. Date: Do NOT include a date.
2. Salutation: Start exactly with "{SALUTATION},".
3. Opening: Start exactly with "{OPENING_LINE}".
4. Body Paragraph 1: MUST start with "{FIRST_TRANSITION}".
   - Logic: Describe a specific project -> The difficulties/challenges faced -> How the student solved them -> The qualities demonstrated.
   - Length: Approximately 125 words.
5. Body Paragraph 2: MUST start with "{SECOND_TRANSITION}".
   - Logic: Describe a different project/aspect -> The difficulties/challenges -> Solution -> Qualities demonstrated.
   - Length: Approximately 125 words.
6. Conclusion: MUST start with "{CONCLUSION_TRANSITION} [summary of qualities]...".
7. Sign-off: "{SIGN_OFF}" followed by the Professor's info.
8. Total Length: Approximately 350 words.
9. Tone: Professional, academic, highly positive.

Input Data:
Professor Info: {subject_context.strip()}
Student Material: {source_material.strip()}
    """.strip()


def build_refinement_instruction(seed_text: str) -> str:
    return f"""
You are an assistant helping a user refine a recommendation letter.
The current letter context is provided.
When the user asks to change something, output the *Revised English Letter Only* if they ask for a rewrite, or answer their question politely.
If you rewrite the letter, please keep the strict structure ({SALUTATION}, {FIRST_TRANSITION.rstrip(',')}, {SECOND_TRANSITION.rstrip(',')}, {CONCLUSION_TRANSITION}...) unless explicitly told otherwise.

Current Letter Context:
{seed_text}
    """.strip()
