import asyncio

import streamlit as st

import config
from gemini_service import create_client
from schema import AnalysisResult
from document_assets import UPLOAD_EXTENSIONS, generate_report_docx, generate_report_pdf, upload_event, upload_key
from presentation import (
    BulletSelection,
    admission_odds,
    comparison_panels,
    cover_letter_block,
    flagged_bullets,
    improvement_cards,
    interview_lists,
)
from workflow import (
    LOADING_PHASES,
    AnotherJob,
    JobDescriptionChanged,
    Navigate,
    RequestAbandoned,
    ResetAll,
    ResumeCleared,
    ResumeTextChanged,
    Step,
    Workflow,
)


# --- 0. Setup and Configuration ---
config.configure_logging()

st.set_page_config(page_title="Crackify", layout="wide", initial_sidebar_state="collapsed")


@st.cache_resource
def get_gemini_client():
    if not config.API_KEY:
        st.warning("🚨 GEMINI_API_KEY not found. Set it in your environment or .env file.")
    try:
        return create_client()
    except Exception as e:
        st.error(f"Error initializing Gemini client: {e}")
        return None


client = get_gemini_client()

if not client:
    st.stop()

if "workflow" not in st.session_state: st.session_state.workflow = Workflow(client)
if "bullet_selection" not in st.session_state: st.session_state.bullet_selection = BulletSelection()
if "upload_key" not in st.session_state: st.session_state.upload_key = None
if "upload_nonce" not in st.session_state: st.session_state.upload_nonce = 0

workflow: Workflow = st.session_state.workflow


def go(event):
    workflow.dispatch(event)
    st.session_state.bullet_selection = BulletSelection()
    st.rerun()


# Bumping the nonce gives the uploader a fresh key, which empties the widget.
def clear_uploader():
    st.session_state.upload_key = None
    st.session_state.upload_nonce += 1


# --- 1. Header ---
col_brand, col_nav = st.columns([5, 1])
with col_brand:
    st.title("⚡ Crackify")
    st.caption("Realistic admission odds, resume line edits and interview prep for one target role.")
with col_nav:
    if st.button("🔎 DISCOVER", key="nav_discover"): go(Navigate(Step.SEARCH))
    if st.button("📝 Analyze", key="nav_input"): go(Navigate(Step.INPUT))


# --- 2. Discovery View ---
def render_search():
    st.header("Discovery Engine")
    st.caption("Sourcing current openings for your target role.")
    state = workflow.state

    with st.form("search_form"):
        query = st.text_input("Job title, company, or location...", value=state.search_query)
        submitted = st.form_submit_button("Search", disabled=state.is_searching)
    if submitted and query.strip():
        with st.spinner("Searching live postings..."):
            asyncio.run(workflow.search(query))
        st.rerun()

    if workflow.state.error_message:
        st.info(workflow.state.error_message)

    for idx, job in enumerate(workflow.state.search_results):
        with st.container(border=True):
            col_info, col_select = st.columns([5, 1])
            with col_info:
                st.markdown(f"**{job.title}**")
                st.markdown(f"{job.company} • {job.location}")
                st.caption(job.snippet)
            with col_select:
                if st.button("Select", key=f"select_job_{idx}"):
                    with st.spinner("Sourcing Details..."):
                        asyncio.run(workflow.select_job(job))
                    st.rerun()


# --- 3. Input View ---
def render_input():
    st.header("Let's Test Your Resume!")
    state = workflow.state

    if state.error_message:
        st.error(f"System Error: {state.error_message}")

    col_resume, col_job = st.columns(2)
    with col_resume:
        st.subheader("Step 1: Your Resume")
        uploaded_file = st.file_uploader(
            "Upload Resume", type=UPLOAD_EXTENSIONS, key=f"resume_upload_{st.session_state.upload_nonce}",
        )
        try:
            event, st.session_state.upload_key = upload_event(st.session_state.upload_key, uploaded_file, workflow.state.resume)
        except ValueError as e:
            st.session_state.upload_key = upload_key(uploaded_file)
            st.error(str(e))
        else:
            if event is not None:
                workflow.dispatch(event)
                st.rerun()

        if workflow.state.resume.file is not None:
            st.success(f"📎 {workflow.state.resume.file.name}")
            if st.button("Remove file", key="remove_resume_file"):
                clear_uploader()
                go(ResumeCleared())
        else:
            resume_text = st.text_area("Or paste text...", value=workflow.state.resume.text, height=300)
            if resume_text != workflow.state.resume.text:
                workflow.dispatch(ResumeTextChanged(resume_text))

    with col_job:
        st.subheader("Step 2: Job Description")
        if workflow.state.is_fetching_detail:
            st.info("Sourcing Details...")
        job_text = st.text_area(
            "Full listing details go here...", value=workflow.state.job_description, height=360,
            disabled=workflow.state.is_fetching_detail,
        )
        if job_text != workflow.state.job_description:
            workflow.dispatch(JobDescriptionChanged(job_text))

    if st.button("Analyze Odds", type="primary", disabled=not workflow.state.can_analyze, key="analyze_button"):
        render_analyzing()


# --- 4. Analyzing View ---
def render_analyzing():
    st.divider()
    st.header("Cracking...")
    phase_slot = st.empty()

    def show_phase(index: int):
        phase_slot.markdown(f"**{LOADING_PHASES[index].upper()}**")

    with st.spinner("Deep reasoning in progress. This can take a few minutes."):
        asyncio.run(workflow.analyze(on_phase=show_phase))
    st.session_state.bullet_selection = BulletSelection()
    st.rerun()


# --- 5. Result View ---
def render_terms(terms, highlight: str):
    return " ".join(f"{highlight}**{t.term}**" if t.overlapping else f"`{t.term}`" for t in terms) or "_none_"


def render_result(result: AnalysisResult):
    col_odds, col_summary, col_actions = st.columns([1, 3, 1])
    with col_odds:
        st.metric(label="Acceptance Odds", value=admission_odds(result))
        st.caption(f"Match {result.match_score:g} • Selectivity {result.selectivity_score:g}")
    with col_summary:
        st.markdown("**Executive Summary**")
        st.markdown(f"_\"{result.executive_summary}\"_")
    with col_actions:
        if st.button("New Discovery", key="another_job"): go(AnotherJob())
        if st.button("Reset Profile", key="reset_all"):
            clear_uploader()
            go(ResetAll())

    panel_cols = st.columns(2)
    for col, panel in zip(panel_cols, comparison_panels(result)):
        with col, st.container(border=True):
            st.markdown(f"**{panel.title}**")
            st.markdown("Candidate: " + render_terms(panel.candidate, "✅ "))
            st.markdown("Requirements: " + render_terms(panel.requirements, "✅ "))

    st.subheader("Improvement Plan")
    card_cols = st.columns(3)
    for col, rec in zip(card_cols, improvement_cards(result)):
        with col, st.container(border=True):
            st.markdown(f"**{rec.title}**")
            st.caption(f"{rec.priority} priority • {rec.difficulty}")
            st.write(rec.description)
            st.markdown("\n".join(f"{i}. {step}" for i, step in enumerate(rec.mastery_steps, start=1)))

    st.subheader("Resume Line Review")
    flagged = flagged_bullets(result)
    selection: BulletSelection = st.session_state.bullet_selection
    col_lines, col_detail = st.columns([3, 2])
    with col_lines:
        if not flagged:
            st.success("No lines flagged. Your bullets already read well for this role.")
        for i, bullet in enumerate(flagged):
            label = ("👉 " if selection.index == i else "") + bullet.original_text
            if st.button(label, key=f"bullet_{i}"):
                st.session_state.bullet_selection = selection.select(i)
                st.rerun()
    with col_detail:
        active = selection.selected(result)
        if active is None:
            st.info("Select a highlighted line to see the critique.")
        else:
            st.markdown(f"> {active.original_text}")
            if active.feedback:
                st.markdown(f"**Critique:** {active.feedback}")
            if active.suggested_update:
                st.markdown("**Suggested rewrite:**")
                st.code(active.suggested_update, language=None)

    st.subheader("Interview Prep")
    prep = interview_lists(result)
    prep_cols = st.columns(3)
    for col, (title, items) in zip(prep_cols, (
        ("Technical Drill-Downs", prep.technical_topics),
        ("Behavioral Scenarios", prep.behavioral_prompts),
        ("Insider Tips", prep.insider_tips),
    )):
        with col:
            st.markdown(f"**{title}**")
            st.markdown("\n".join(f"- {item}" for item in items) or "_none_")

    tips = cover_letter_block(result)
    if tips is not None:
        st.subheader("Cover Letter Strategy")
        st.markdown(f"**Master Narrative:** _\"{tips.tone}\"_")
        st.markdown("\n".join(f"- {n}" for n in tips.key_narratives))
        if tips.must_mention_skills:
            st.markdown("Must mention: " + ", ".join(f"`{s}`" for s in tips.must_mention_skills))

    st.divider()
    col_pdf, col_docx, col_json = st.columns(3)
    with col_pdf:
        st.download_button("Download Report (.pdf)", data=generate_report_pdf(result).getvalue(), file_name="Crackify_Report.pdf", mime="application/pdf", key="report_pdf")
    with col_docx:
        st.download_button(
            "Download Report (.docx)",
            data=generate_report_docx(result).getvalue(),
            file_name="Crackify_Report.docx",
            mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            key="report_docx",
        )
    with col_json:
        st.download_button("Download Raw JSON", data=result.model_dump_json(by_alias=True, indent=2), file_name="Crackify_Report.json", mime="application/json", key="report_json")


# --- 6. Router ---
if workflow.state.is_busy:
    # Nothing is in flight between reruns; a pending request belongs to an interrupted run.
    workflow.dispatch(RequestAbandoned())

step = workflow.state.step
if step == Step.SEARCH:
    render_search()
elif step == Step.RESULT and workflow.state.result is not None:
    render_result(workflow.state.result)
else:
    render_input()
