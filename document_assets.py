# document_assets.py
import mimetypes
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, ListFlowable, ListItem

from docx import Document
from docx.shared import Pt
from docx.enum.text import WD_ALIGN_PARAGRAPH

from schema import AnalysisResult, FileData, ResumeInput
from presentation import admission_odds, comparison_panels, flagged_bullets, improvement_cards, interview_lists
from workflow import ResumeCleared, ResumeFileAttached, ResumeTextChanged

# Sent to the model as inline data; Word files are converted to text first.
ATTACHMENT_EXTENSIONS = {"pdf", "png", "jpg", "jpeg"}
TEXT_EXTENSIONS = {"docx"}
UPLOAD_EXTENSIONS = sorted(ATTACHMENT_EXTENSIONS | TEXT_EXTENSIONS)


# --- A. RESUME INGESTION ---

def read_docx(file) -> str:
    document = Document(file)
    return "".join(para.text + "\n" for para in document.paragraphs).strip()


def resume_input_from_upload(name: str, mime_type: str, payload: bytes) -> ResumeInput:
    """Turn an uploaded file into a ResumeInput: an attachment for PDFs/images, raw text for .docx."""
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    if extension in TEXT_EXTENSIONS:
        return ResumeInput().with_text(read_docx(BytesIO(payload)))
    if extension in ATTACHMENT_EXTENSIONS:
        mime_type = mime_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
        return ResumeInput().with_file(FileData.from_bytes(name, mime_type, payload))
    raise ValueError(f"Unsupported resume file type: .{extension or '?'} (use {', '.join(UPLOAD_EXTENSIONS)})")


def upload_key(uploaded):
    return (uploaded.name, uploaded.size)


def upload_event(previous_key, uploaded, resume: ResumeInput):
    """Event that brings the resume in line with the uploader widget, plus the widget's new key.

    `uploaded` is the widget's value (name, size, type, getvalue()) or None once the user
    clears it. Clearing only drops an attachment that came from the uploader.
    """
    if uploaded is None:
        if previous_key is not None and resume.file is not None:
            return ResumeCleared(), None
        return None, None

    key = upload_key(uploaded)
    if key == previous_key:
        return None, key
    ingested = resume_input_from_upload(uploaded.name, uploaded.type, uploaded.getvalue())
    if ingested.file is not None:
        return ResumeFileAttached(ingested.file), key
    return ResumeTextChanged(ingested.text), key


# --- B. ANALYSIS REPORT (PDF, using ReportLab) ---

def _bullets(items, style):
    return ListFlowable(
        [ListItem(Paragraph(escape(item), style), bulletText='•') for item in items],
        bulletType='bullet', start='bullet',
    )


def generate_report_pdf(result: AnalysisResult, job_title: str = "") -> BytesIO:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, leftMargin=0.5*inch, rightMargin=0.5*inch, topMargin=0.5*inch, bottomMargin=0.5*inch)
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name='HeadingOdds', fontName='Helvetica-Bold', fontSize=20, alignment=1, textColor=HexColor('#D4AF37')))
    styles.add(ParagraphStyle(name='HeadingSection', fontName='Helvetica-Bold', fontSize=14, spaceBefore=12, spaceAfter=4, textColor=HexColor('#333333')))
    styles.add(ParagraphStyle(name='NormalSmall', fontName='Helvetica', fontSize=10, leading=12))
    story = []

    story.append(Paragraph(f"ACCEPTANCE ODDS: {admission_odds(result)}", styles['HeadingOdds']))
    if job_title:
        story.append(Paragraph(escape(job_title), styles['Italic']))
    story.append(Spacer(1, 0.2*inch))
    story.append(Paragraph(
        f"Match score: {result.match_score:g} | Selectivity: {result.selectivity_score:g}", styles['NormalSmall'],
    ))
    story.append(Paragraph("EXECUTIVE SUMMARY", styles['HeadingSection']))
    story.append(Paragraph(escape(result.executive_summary), styles['NormalSmall']))

    for panel in comparison_panels(result):
        story.append(Paragraph(panel.title.upper(), styles['HeadingSection']))
        story.append(Paragraph("Candidate: " + escape(", ".join(t.term for t in panel.candidate)), styles['NormalSmall']))
        story.append(Paragraph("Requirements: " + escape(", ".join(t.term for t in panel.requirements)), styles['NormalSmall']))

    story.append(Paragraph("IMPROVEMENT PLAN", styles['HeadingSection']))
    for rec in improvement_cards(result):
        story.append(Paragraph(f"<b>{escape(rec.title)}</b> ({rec.priority} priority, {rec.difficulty})", styles['NormalSmall']))
        story.append(Paragraph(escape(rec.description), styles['NormalSmall']))
        story.append(_bullets(rec.mastery_steps, styles['NormalSmall']))
        story.append(Spacer(1, 0.1*inch))

    flagged = flagged_bullets(result)
    if flagged:
        story.append(Paragraph("RESUME LINES TO REWORK", styles['HeadingSection']))
        for bullet in flagged:
            story.append(Paragraph(f"<i>\"{escape(bullet.original_text)}\"</i>", styles['NormalSmall']))
            if bullet.feedback:
                story.append(Paragraph(escape(bullet.feedback), styles['NormalSmall']))
            if bullet.suggested_update:
                story.append(Paragraph("Rewrite: " + escape(bullet.suggested_update), styles['NormalSmall']))
            story.append(Spacer(1, 0.05*inch))

    prep = interview_lists(result)
    story.append(Paragraph("INTERVIEW PREP", styles['HeadingSection']))
    for label, items in (("Technical topics", prep.technical_topics), ("Behavioral prompts", prep.behavioral_prompts), ("Insider tips", prep.insider_tips)):
        if items:
            story.append(Paragraph(f"<b>{label}</b>", styles['NormalSmall']))
            story.append(_bullets(items, styles['NormalSmall']))

    tips = result.cover_letter_tips
    if tips is not None:
        story.append(Paragraph("COVER LETTER", styles['HeadingSection']))
        if tips.tone:
            story.append(Paragraph(f"Tone: {escape(tips.tone)}", styles['NormalSmall']))
        if tips.key_narratives:
            story.append(_bullets(tips.key_narratives, styles['NormalSmall']))
        if tips.must_mention_skills:
            story.append(Paragraph("Must mention: " + escape(", ".join(tips.must_mention_skills)), styles['NormalSmall']))

    doc.build(story)
    buffer.seek(0)
    return buffer


# --- C. ANALYSIS REPORT (DOCX, using python-docx) ---

def generate_report_docx(result: AnalysisResult, job_title: str = "") -> BytesIO:
    document = Document()
    p = document.add_paragraph()
    runner = p.add_run(f"Acceptance Odds: {admission_odds(result)}")
    runner.font.size = Pt(18)
    runner.bold = True
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    if job_title:
        document.add_paragraph(job_title).alignment = WD_ALIGN_PARAGRAPH.CENTER

    document.add_heading('Executive Summary', level=2)
    document.add_paragraph(result.executive_summary)

    for panel in comparison_panels(result):
        document.add_heading(panel.title, level=2)
        document.add_paragraph("Candidate: " + ", ".join(t.term for t in panel.candidate))
        document.add_paragraph("Requirements: " + ", ".join(t.term for t in panel.requirements))

    document.add_heading('Improvement Plan', level=2)
    for rec in improvement_cards(result):
        p_title = document.add_paragraph()
        p_title.add_run(rec.title).bold = True
        p_title.add_run(f" | {rec.priority} priority, {rec.difficulty}").italic = True
        document.add_paragraph(rec.description)
        for step in rec.mastery_steps:
            document.add_paragraph(step, style='List Bullet')

    flagged = flagged_bullets(result)
    if flagged:
        document.add_heading('Resume Lines to Rework', level=2)
        for bullet in flagged:
            document.add_paragraph().add_run(bullet.original_text).italic = True
            if bullet.feedback:
                document.add_paragraph(bullet.feedback)
            if bullet.suggested_update:
                document.add_paragraph(f"Rewrite: {bullet.suggested_update}", style='List Bullet')

    prep = interview_lists(result)
    document.add_heading('Interview Prep', level=2)
    for label, items in (("Technical topics", prep.technical_topics), ("Behavioral prompts", prep.behavioral_prompts), ("Insider tips", prep.insider_tips)):
        if items:
            document.add_paragraph().add_run(label).bold = True
            for item in items:
                document.add_paragraph(item, style='List Bullet')

    tips = result.cover_letter_tips
    if tips is not None:
        document.add_heading('Cover Letter', level=2)
        if tips.tone:
            document.add_paragraph(f"Tone: {tips.tone}")
        for narrative in tips.key_narratives:
            document.add_paragraph(narrative, style='List Bullet')
        if tips.must_mention_skills:
            document.add_paragraph("Must mention: " + ", ".join(tips.must_mention_skills))

    buffer = BytesIO()
    document.save(buffer)
    buffer.seek(0)
    return buffer
