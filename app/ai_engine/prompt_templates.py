"""
app/ai_engine/prompt_templates.py — All LangChain prompt templates for the AI engine.

Three prompt chains:
  1. LEAD_ANALYSIS      — contact inquiry → structured qualification JSON
  2. CLIENT_RESPONSE    — inquiry + analysis → personalised reply body
  3. ADMIN_SUMMARY      — inquiry + analysis → 2-3 sentence internal summary
"""

from langchain_core.prompts import ChatPromptTemplate


# ── 1. Lead Analysis ──────────────────────────────────────────────────────────

LEAD_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        (
            "You are an experienced software agency consultant who qualifies inbound "
            "project inquiries. Be analytical, conservative, and realistic."
        ),
    ),
    (
        "human",
        """Analyze this potential client inquiry and provide qualification data.

INQUIRY:
Name: {name}
Company: {company}
Project Type: {project_type}
Phone provided: {has_phone}
Message:
{message}

Consider:
- Technical complexity indicators in the message
- Budget signals in language (premium, budget, enterprise, etc.)
- Timeline urgency cues (ASAP, urgent, planning, exploring)
- Project scope indicators (small, large, ongoing, one-time)
- Potential red flags or challenges

Only assign "high" priority when there are clear indicators of value, urgency, and budget.

Return ONLY a valid JSON object with exactly these fields:
{{
  "priority": "high" | "medium" | "low",
  "projectType": "web-development" | "mobile-app" | "consultation" | "maintenance" | "e-commerce" | "custom-software" | "other",
  "estimatedBudget": "under-5k" | "5k-15k" | "15k-50k" | "50k-plus",
  "urgency": "immediate" | "within-month" | "planning" | "exploring",
  "complexity": "simple" | "medium" | "complex",
  "keyRequirements": ["<specific requirement>", ...],
  "recommendedNextSteps": ["<2-3 concrete actions>"],
  "riskFactors": ["<challenge or red flag>", ...],
  "confidenceScore": <number 0.1-1.0, based on how much information was provided>
}}
""",
    ),
])


# ── 2. Client Response ────────────────────────────────────────────────────────

CLIENT_RESPONSE_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        (
            "You write warm, professional replies to prospective clients of a small "
            "software studio. Never promise prices. Write like a real person."
        ),
    ),
    (
        "human",
        """Write a personalised reply to this inquiry.

CLIENT:
Name: {name}
Company: {company}
Project Type: {project_type}
Message: {message}

ANALYSIS:
Priority: {priority}
Urgency: {urgency}
Complexity: {complexity}
Estimated timeline: {timeline}
Key Requirements: {key_requirements}
Recommended Next Steps: {next_steps}

REQUIREMENTS:
- Greet them by name
- Reference their company if provided and the requirements they mentioned
- Mention the estimated timeline range
- Suggest next steps appropriate to their urgency and end with a clear call to book a consultation
- Under 200 words, plain text, no signature (one is added automatically)
""",
    ),
])


# ── 3. Admin Summary ──────────────────────────────────────────────────────────

ADMIN_SUMMARY_PROMPT = ChatPromptTemplate.from_messages([
    (
        "system",
        "You brief a busy agency owner on new leads. Be concise and actionable.",
    ),
    (
        "human",
        """Summarise this new lead in 2-3 sentences.

Lead: {name} ({company})
Priority: {priority}
Project: {project_type}
Budget: {budget}
Urgency: {urgency}
Complexity: {complexity}
Key Requirements: {key_requirements}
Risk Factors: {risk_factors}

Explain why it is {priority} priority, what should happen next, and any notable concern.
""",
    ),
])
