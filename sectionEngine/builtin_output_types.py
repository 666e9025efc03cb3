"""
Built-in Output Types
=====================

Static catalogs: for each output type, its ordered section drivers, the shared
instruction directives and the item fields. Driverless types carry a prompt
template instead. Pure data.
"""

from typing import List, Tuple

from sectionEngine.contracts import InstructionDirective, OutputField, OutputTypeDefinition, SectionDriver


def _drivers(pairs: List[Tuple[str, str]]) -> List[SectionDriver]:
    return [SectionDriver(name=name, description=description) for name, description in pairs]


def _directives(pairs: List[Tuple[str, str]]) -> List[InstructionDirective]:
    return [InstructionDirective(label=label, content=content) for label, content in pairs]


# =================================================================================================
# Checklist
# =================================================================================================

CHECKLIST_DIMENSIONS = _drivers([
    ("Preparation & Prerequisites", "Everything needed before starting: inputs, approvals, context gathering, and readiness checks"),
    ("Stakeholder Alignment", "People to inform, consult, or get approval from; managing expectations and securing buy-in"),
    ("Process & Execution", "The core steps of doing the work: sequencing, methods, and execution standards"),
    ("Quality & Validation", "Checks, reviews, and validations to ensure the work meets standards and produces correct results"),
    ("Risk & Contingency", "Potential failure points, risk mitigation steps, fallback plans, and early warning signs"),
    ("Compliance & Governance", "Regulatory requirements, policy adherence, audit readiness, and organizational standards"),
    ("Communication & Handoff", "Who needs to know what, when to communicate, status updates, and transition of responsibility"),
    ("Documentation & Evidence", "What to record, how to document decisions, audit trails, and institutional knowledge"),
    ("Tools & Resources", "Systems, tools, data sources, templates, and supporting materials needed for success"),
    ("Timeline & Milestones", "Key deadlines, sequencing constraints, dependencies, and checkpoint dates"),
    ("Review & Continuous Improvement", "Post-completion review, lessons learned, feedback loops, and optimization opportunities"),
    ("Edge Cases & Exceptions", "Unusual scenarios, special conditions, override procedures, and non-standard paths"),
])

CHECKLIST_DIRECTIVES = _directives([
    ("Role", "You are an expert process consultant and operations advisor who has designed operational readiness checklists for product launches, compliance audits, and cross-functional initiatives."),
    ("Task", "Generate a thorough checklist for this dimension where every item is concrete enough that two different people could independently agree on whether it is complete."),
    ("Item count", "Generate 4-8 specific, actionable checklist items relevant to the given context."),
    ("Relevance filter", "Only include items if this dimension is genuinely relevant. If not relevant, return an empty items array."),
    ("Concreteness", "Each item must be concrete and verifiable, not vague guidance."),
    ("Priority levels", "Assign priority: High (must-do, blocking), Medium (should-do, important), Low (nice-to-have). Reserve High for truly blocking items."),
    ("Descriptions", "The description should explain WHY this matters and HOW to execute it well."),
    ("Common mistakes", "Each item should include commonMistakes: what people typically get wrong, shortcuts that backfire, or pitfalls to avoid."),
    ("Pro tips", "Each item should include tips: practical advice from experienced practitioners on doing this faster or more reliably."),
    ("Verification method", "Each item should include verificationMethod: the artifact, test, or approval that proves completion."),
    ("Tailoring", "Tailor everything to the specific context provided."),
])

CHECKLIST = OutputTypeDefinition(
    id="checklist",
    name="Checklist",
    description="Actionable checklists organized by category with priority levels",
    section_label="Dimension",
    element_label="Item",
    fields=[
        OutputField(key="item", label="Checklist Item", type="short-text", primary=True),
        OutputField(key="description", label="Description"),
        OutputField(key="priority", label="Priority", type="short-text"),
        OutputField(key="commonMistakes", label="Common Mistakes"),
        OutputField(key="tips", label="Pro Tips"),
        OutputField(key="verificationMethod", label="How to Verify", type="short-text"),
    ],
    drivers=CHECKLIST_DIMENSIONS,
    directives=CHECKLIST_DIRECTIVES,
)


# =================================================================================================
# Playbook
# =================================================================================================

PLAYBOOK_PHASES = _drivers([
    ("Preparation & Prerequisites", "Everything needed before starting: inputs, approvals, resources, skills, and readiness checks"),
    ("Foundation & Setup", "Initial setup: environment configuration, stakeholder alignment, baseline establishment, and kickoff"),
    ("Core Execution", "The primary work: step-by-step instructions for the main activities, processes, and deliverables"),
    ("Stakeholder Management", "Engaging the right people: communication cadences, escalation paths, feedback loops"),
    ("Quality Gates & Checkpoints", "Validation points: reviews, approvals, acceptance criteria, and go/no-go moments"),
    ("Exception Handling", "When things go wrong: troubleshooting guides, fallback procedures, and recovery playbooks"),
    ("Scaling & Optimization", "Going from working to working well: performance tuning, capacity planning, efficiency"),
    ("Communication & Reporting", "Keeping everyone informed: status reports, dashboards, and stakeholder updates"),
    ("Measurement & Review", "Tracking success: KPIs, metrics, retrospectives, and continuous improvement loops"),
    ("Handoff & Closeout", "Wrapping up: transition of ownership, final documentation, archival, and follow-ups"),
])

PLAYBOOK_DIRECTIVES = _directives([
    ("Role", "You are a senior operations strategist who has designed and deployed execution playbooks for product launches, market entries, and operational transformations."),
    ("Task", "Generate 3-5 actionable plays for this execution phase, detailed enough that someone who just joined the team could follow them without a clarifying question."),
    ("Relevance filter", "Only generate plays if this phase is genuinely relevant to the given context. If not relevant, return an empty items array."),
    ("Specificity", "Every play must be specific to the described context, not generic process advice."),
    ("Instructions", "The instructions field must be numbered, concrete, step-by-step guidance naming tools, methods, and sequences."),
    ("Decision criteria", "The decisionCriteria field must describe when to proceed, pivot, or escalate, using 'If X, then Y' where applicable."),
    ("Expected outcome", "The expectedOutcome field must describe the tangible deliverable or state that indicates success."),
    ("Time estimate", "Each play should include a realistic timeEstimate that accounts for team size, approvals, and dependencies."),
    ("Tailoring", "Tailor plays to the specific context, team size, resources, and constraints provided."),
])

PLAYBOOK = OutputTypeDefinition(
    id="playbook",
    name="Playbook",
    description="Phase-by-phase execution plays with instructions and decision criteria",
    section_label="Phase",
    element_label="Play",
    fields=[
        OutputField(key="title", label="Play Title", type="short-text", primary=True),
        OutputField(key="objective", label="Objective"),
        OutputField(key="instructions", label="Step-by-Step Instructions"),
        OutputField(key="decisionCriteria", label="Decision Criteria"),
        OutputField(key="expectedOutcome", label="Expected Outcome"),
        OutputField(key="commonPitfalls", label="Common Pitfalls"),
        OutputField(key="tips", label="Pro Tips"),
        OutputField(key="timeEstimate", label="Time Estimate", type="short-text"),
    ],
    drivers=PLAYBOOK_PHASES,
    directives=PLAYBOOK_DIRECTIVES,
)


# =================================================================================================
# Dossier
# =================================================================================================

DOSSIER_SECTIONS = _drivers([
    ("Overview & Background", "Foundational context: history, origins, mission, and the broader landscape"),
    ("Key Players & Stakeholders", "Leadership, decision-makers, influencers, partners, and key relationships"),
    ("Market Position & Dynamics", "Market share, competitive standing, target segments, positioning, and trends"),
    ("Financial & Business Model", "Revenue streams, cost structure, funding, profitability, and business model mechanics"),
    ("Products & Services", "Core offerings, portfolio, service capabilities, differentiation, and value proposition"),
    ("Strengths & Vulnerabilities", "Core competencies, competitive advantages, known weaknesses, and capability gaps"),
    ("Strategic Direction & Roadmap", "Stated strategy, growth plans, announced initiatives, and likely future moves"),
    ("Technology & Infrastructure", "Technology stack, platforms, digital capabilities, and technical strengths or debts"),
    ("Regulatory & Compliance Landscape", "Regulatory environment, compliance obligations, legal exposure, and governance"),
    ("Risks & Threats", "External threats, internal risks, market disruptions, and dependency risks"),
    ("Opportunities & Entry Points", "Exploitable gaps, partnership openings, white spaces, and strategic leverage points"),
])

DOSSIER_DIRECTIVES = _directives([
    ("Role", "You are a senior intelligence analyst who has produced strategic intelligence briefings for C-suite decision-makers."),
    ("Task", "Generate 3-5 intelligence briefings for this research area that a busy executive could read in 5 minutes and know what to do differently."),
    ("Relevance filter", "Only generate briefings if this intelligence area is genuinely relevant to the given context. If not relevant, return an empty items array."),
    ("Executive summary", "The summary field must give the key takeaway a decision-maker needs in 2-3 sentences."),
    ("Key findings", "The keyFindings field must present concrete findings backed by observable signals or data points."),
    ("Strategic implications", "The strategicImplications field must tell the reader what to CHANGE, not just what to monitor."),
    ("Evidence", "The evidence field must cite the types of sources and signals that support the findings."),
    ("Analytical rigor", "Distinguish confirmed facts, strong indicators, and speculative assessments."),
    ("Tailoring", "Tailor the intelligence to the specific context, industry, and decision-making needs provided."),
])

DOSSIER = OutputTypeDefinition(
    id="dossier",
    name="Dossier",
    description="Intelligence briefings organized by research area",
    section_label="Intelligence Area",
    element_label="Briefing",
    fields=[
        OutputField(key="title", label="Briefing Title", type="short-text", primary=True),
        OutputField(key="summary", label="Executive Summary"),
        OutputField(key="keyFindings", label="Key Findings"),
        OutputField(key="strategicImplications", label="Strategic Implications"),
        OutputField(key="evidence", label="Evidence & Sources"),
        OutputField(key="riskAssessment", label="Risk Assessment"),
        OutputField(key="opportunities", label="Opportunities"),
    ],
    drivers=DOSSIER_SECTIONS,
    directives=DOSSIER_DIRECTIVES,
)


# =================================================================================================
# Decision Book
# =================================================================================================

DECISION_DOMAINS = _drivers([
    ("Strategic Direction", "Vision, positioning, market entry or exit, competitive strategy, and long-term direction"),
    ("Resource Allocation", "Budget distribution, headcount, tooling investments, and where to invest versus divest"),
    ("Prioritization & Sequencing", "What to do first, what to defer, how to sequence initiatives with limited capacity"),
    ("Risk & Trade-offs", "Acceptable risk levels, speed-vs-quality and cost-vs-capability trade-offs"),
    ("People & Organization", "Hiring, team structure, role definitions, delegation, and culture shaping"),
    ("Technology & Infrastructure", "Platforms, build-vs-buy, architecture choices, tooling, and technical debt"),
    ("Customer & Market", "Target segments, pricing, positioning, go-to-market, and customer experience trade-offs"),
    ("Process & Operations", "Workflows, standards, automation, and efficiency-vs-flexibility trade-offs"),
    ("Partnerships & Vendors", "Who to partner with, what to outsource, vendor selection, and collaboration models"),
    ("Governance & Compliance", "Policies, controls, approval flows, regulatory responses, and accountability"),
    ("Communication & Transparency", "What to share, when, with whom, through which channels, and how much to disclose"),
    ("Innovation & Experimentation", "What to pilot, when to scale experiments, and when to kill initiatives"),
])

DECISION_DIRECTIVES = _directives([
    ("Role", "You are a senior decision strategist who has facilitated high-stakes decision workshops for executive teams."),
    ("Task", "Generate 3-5 key decisions within this domain that surface genuine dilemmas where reasonable people could disagree."),
    ("Relevance filter", "Only generate decisions if this domain is genuinely relevant to the given context. If not relevant, return an empty items array."),
    ("Stakes", "The context field must explain what is at stake and what happens if the decision is delayed or made poorly."),
    ("Options & trade-offs", "The options field must present 2-3 realistic alternatives, including the status quo, with honest trade-offs."),
    ("Decision criteria", "The criteria field must be specific to THIS decision, not generic cost/speed/quality."),
    ("Recommendation", "The recommendation must commit to a reasoned position and state when an alternative would be better."),
    ("Tailoring", "Tailor decisions to the specific role, their authority level, and organizational context."),
])

DECISION_BOOK = OutputTypeDefinition(
    id="decision-books",
    name="Decision Book",
    description="Hard decisions by domain with options, criteria, and a recommended path",
    section_label="Decision Domain",
    element_label="Decision",
    fields=[
        OutputField(key="decision", label="The Decision", primary=True),
        OutputField(key="context", label="Why This Decision Matters"),
        OutputField(key="options", label="Key Options & Trade-offs"),
        OutputField(key="criteria", label="Decision Criteria"),
        OutputField(key="risks", label="Risks & Failure Modes"),
        OutputField(key="stakeholders", label="Key Stakeholders & Impact"),
        OutputField(key="recommendation", label="Recommended Path"),
    ],
    drivers=DECISION_DOMAINS,
    directives=DECISION_DIRECTIVES,
)


# =================================================================================================
# Cheat Sheet
# =================================================================================================

CHEAT_SHEET_CATEGORIES = _drivers([
    ("Key Terminology & Definitions", "Essential vocabulary, acronyms, and domain-specific terms"),
    ("Core Principles & Rules", "Foundational rules, governing principles, and non-negotiable standards"),
    ("Common Patterns & Templates", "Reusable structures, proven templates, and go-to approaches for recurring situations"),
    ("Formulas & Calculations", "Key formulas, conversion factors, and quantitative shortcuts used frequently"),
    ("Do's & Don'ts", "Best practices to follow and anti-patterns to avoid"),
    ("Rules of Thumb & Shortcuts", "Quick heuristics, mental models, and decision shortcuts for rapid judgment calls"),
    ("Common Mistakes & Fixes", "Frequent errors, their root causes, and proven solutions"),
    ("Key Metrics & Benchmarks", "Industry benchmarks, target ranges, thresholds, and performance indicators"),
    ("Essential Tools & Resources", "Must-have tools, reference materials, and go-to resources"),
    ("Quick Reference", "At-a-glance summaries, comparison tables, and lookup information for daily use"),
])

CHEAT_SHEET_DIRECTIVES = _directives([
    ("Role", "You are an expert educator who creates scannable, high-density quick-reference materials for practitioners."),
    ("Task", "Generate 4-8 quick-reference entries for this category; every entry must be absorbable in under 10 seconds."),
    ("Relevance filter", "Only generate entries if this category is genuinely relevant to the given context. If not relevant, return an empty items array."),
    ("Definition", "The definition field must be a clear, jargon-free explanation in 1-3 sentences."),
    ("Example", "The example field must show the concept in action within the given context."),
    ("Related concepts", "The relatedConcepts field should list 2-4 closely related terms."),
    ("Prioritization", "Order entries by how frequently they are referenced in practice."),
    ("Tailoring", "Tailor all entries to the specific context, terminology, and audience level provided."),
])

CHEAT_SHEET = OutputTypeDefinition(
    id="cheat-sheets",
    name="Cheat Sheet",
    description="Scannable quick-reference entries grouped by category",
    section_label="Category",
    element_label="Entry",
    fields=[
        OutputField(key="term", label="Term / Concept", type="short-text", primary=True),
        OutputField(key="definition", label="Definition"),
        OutputField(key="example", label="Example / Usage"),
        OutputField(key="relatedConcepts", label="Related Concepts", type="short-text"),
        OutputField(key="commonMistakes", label="Common Mistakes"),
        OutputField(key="quickTip", label="Quick Tip", type="short-text"),
    ],
    drivers=CHEAT_SHEET_CATEGORIES,
    directives=CHEAT_SHEET_DIRECTIVES,
)


# =================================================================================================
# Email Course
# =================================================================================================

EMAIL_COURSE_STAGES = _drivers([
    ("Foundation & Context", "Why this topic matters, what's at stake, and how this course will help"),
    ("Current State Assessment", "Help the reader diagnose where they stand today: self-assessment, patterns, and gaps"),
    ("Core Frameworks", "The key mental models, frameworks, and principles that underpin success"),
    ("Strategic Approach", "How to think strategically about this topic: planning, prioritization, decisions"),
    ("Practical Implementation", "Step-by-step execution guidance for Day 1, Week 1, Month 1"),
    ("Common Pitfalls & Solutions", "The most frequent mistakes and how to avoid or recover from them"),
    ("Advanced Techniques", "Power moves, nuanced strategies, and expert-level approaches"),
    ("Measurement & Optimization", "How to track success, interpret signals, and keep improving"),
    ("Real-World Application", "Case studies, worked examples, and scenario-based learning"),
    ("Action Plan & Next Steps", "A personalized action plan, accountability framework, and ongoing resources"),
])

EMAIL_COURSE_DIRECTIVES = _directives([
    ("Role", "You are an expert email course creator and instructional designer with deep knowledge of drip-sequence design."),
    ("Task", "Generate 2-4 emails for this module that a marketing director would approve for sending without edits."),
    ("Subject lines", "Subject lines must be compelling and specific; avoid generic titles."),
    ("Email body length", "Email bodies should be 150-300 words: educational, conversational, and scannable."),
    ("Call to action", "Each email must end with a clear, specific call to action."),
    ("Send timing", "Each email should include sendTiming: when in the sequence it should go out."),
    ("Tone", "Write as an expert peer, not a lecturer."),
    ("Minimum output", "If this module is not very relevant to the context, still include at least 1 email."),
])

EMAIL_COURSE = OutputTypeDefinition(
    id="email-course",
    name="Email Course",
    description="A drip email course organized into modules",
    section_label="Module",
    element_label="Email",
    fields=[
        OutputField(key="subject", label="Subject Line", type="short-text", primary=True),
        OutputField(key="body", label="Email Body"),
        OutputField(key="callToAction", label="Call to Action", type="short-text"),
        OutputField(key="keyTakeaway", label="Key Takeaway", type="short-text"),
        OutputField(key="subjectLineVariants", label="Subject Line Alternatives"),
        OutputField(key="sendTiming", label="Recommended Send Timing", type="short-text"),
    ],
    drivers=EMAIL_COURSE_STAGES,
    directives=EMAIL_COURSE_DIRECTIVES,
)


# =================================================================================================
# Battle Cards (no drivers: generated in one call from its prompt template)
# =================================================================================================

BATTLE_CARDS = OutputTypeDefinition(
    id="battle-cards",
    name="Battle Cards",
    description="Competitive intelligence cards for sales teams",
    section_label="Competitor",
    element_label="Card",
    fields=[
        OutputField(key="title", label="Card Title", type="short-text", primary=True),
        OutputField(key="strengths", label="Their Strengths"),
        OutputField(key="weaknesses", label="Their Weaknesses"),
        OutputField(key="talkingPoints", label="Your Talking Points"),
    ],
    prompt=(
        "You are a competitive intelligence and sales enablement expert.\n\n"
        "CONTEXT:\n"
        "- Industry: {{industry}}\n"
        "- Service: {{service}}\n"
        "- Role: {{role}}\n"
        "- Competitors: {{competitors}}\n"
        "- Situation: \"{{situation}}\"\n\n"
        "TASK:\n"
        "Create battle cards organized by competitor or competitive theme.\n\n"
        "GUIDELINES:\n"
        "- Each card needs a clear title, strength/weakness analysis, and talking points\n"
        "- Focus on actionable intelligence that sales teams can use in conversations\n"
        "- Include specific differentiators and objection handlers"
    ),
)


BUILTIN_OUTPUT_TYPES: List[OutputTypeDefinition] = [
    CHECKLIST,
    PLAYBOOK,
    DOSSIER,
    DECISION_BOOK,
    CHEAT_SHEET,
    EMAIL_COURSE,
    BATTLE_CARDS,
]
