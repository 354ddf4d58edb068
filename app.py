from __future__ import annotations

import logging
import sqlite3
from html import escape

import altair as alt
import streamlit as st

from hisab_daily import counter, session, trends
from hisab_daily.config import AppConfig, configure_logging, load_config
from hisab_daily.errors import AuthError, InvalidQueryError
from hisab_daily.models import VERDICT_LABELS, User, VerificationResult, Verdict
from hisab_daily.storage import connect
from hisab_daily.verification import DeedVerifier

APP_TITLE = "HisabDaily"
APP_TAGLINE = "Track. Regret. Repent."

VERDICT_META = {
    Verdict.SIN: {"icon": "⛔", "color": "#b4233a"},
    Verdict.NOT_SIN: {"icon": "✅", "color": "#1F7A5C"},
    Verdict.CONTRADICTORY: {"icon": "⚖️", "color": "#b7791f"},
}
PERIOD_LABELS = {7: "7 days", 30: "30 days", 90: "3 months", 180: "6 months", 365: "1 year"}

logger = logging.getLogger("hisab_daily.app")


@st.cache_resource
def get_config() -> AppConfig:
    config = load_config()
    configure_logging(config.log_level)
    return config


@st.cache_resource
def get_conn() -> sqlite3.Connection:
    return connect(get_config().db_path)


@st.cache_resource
def get_verifier() -> DeedVerifier:
    return DeedVerifier(get_config())


def apply_styles() -> None:
    st.markdown(
        """
        <style>
        @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&family=Noto+Naskh+Arabic:wght@500;600&display=swap');
        .stApp {
          background:
            radial-gradient(circle at 12% 12%, rgba(118, 197, 163, 0.30), rgba(255,255,255,0) 28%),
            radial-gradient(circle at 88% 8%, rgba(189, 226, 210, 0.28), rgba(255,255,255,0) 30%),
            linear-gradient(150deg, #eaf6f0 0%, #e5f3ec 46%, #ddf2ea 100%);
          font-family: 'Inter', sans-serif;
        }
        .block-container { max-width: 720px; padding-top: 1rem; padding-bottom: 2.5rem; }
        .hero {
          background: linear-gradient(135deg, rgba(255,255,255,0.33), rgba(255,255,255,0.16));
          backdrop-filter: blur(20px) saturate(140%);
          border: 1px solid rgba(255,255,255,0.48);
          border-radius: 20px;
          padding: 1rem;
          margin-bottom: 1rem;
          text-align: center;
          box-shadow: 0 18px 42px rgba(39, 78, 117, 0.2), inset 0 1px 0 rgba(255,255,255,0.6);
        }
        .hero-title { color: #1F7A5C; font-size: 1.7rem; font-weight: 700; margin: 0; }
        .hero-text { color: #245245; margin: .3rem 0 0; }
        .count-card {
          background: linear-gradient(135deg, rgba(255,255,255,0.38), rgba(255,255,255,0.18));
          border: 1px solid rgba(255,255,255,0.5);
          border-radius: 14px;
          padding: 1rem;
          text-align: center;
          box-shadow: 0 12px 30px rgba(25, 78, 63, 0.16);
        }
        .count-value { font-size: 3.4rem; font-weight: 700; color: #173f35; margin: 0; font-family: monospace; }
        .count-label { color: #2b6153; margin: 0; }
        .verdict-card {
          border-radius: 14px;
          padding: .9rem 1rem;
          margin: .6rem 0;
          background: rgba(255,255,255,0.55);
          border-left: 6px solid var(--verdict-color);
        }
        .verdict-title { margin: 0; font-weight: 700; font-size: 1.15rem; color: var(--verdict-color); }
        .verdict-summary { margin: .35rem 0 0; color: #234b40; line-height: 1.5; }
        .evidence-card {
          background: rgba(255,255,255,0.7);
          border: 1px solid rgba(27,54,40,0.14);
          border-radius: 12px;
          padding: .7rem .8rem;
          margin-bottom: .45rem;
        }
        .evidence-source { margin: 0; color: #183327; font-weight: 700; font-size: .92rem; }
        .evidence-snippet { margin: .25rem 0 0; color: #3b4d46; font-size: .9rem; line-height: 1.5; }
        .stButton > button {
          border-radius: 12px !important;
          font-weight: 600 !important;
          color: #fff !important;
          background: linear-gradient(135deg, rgba(31, 122, 92, 0.88), rgba(55, 167, 126, 0.86)) !important;
          box-shadow: 0 10px 24px rgba(31, 122, 92, 0.32) !important;
        }
        @media (max-width: 768px) {
          .hero-title { font-size: 1.35rem; }
          .count-value { font-size: 2.6rem; }
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def top_section() -> None:
    st.markdown(
        f"""
        <div class="hero">
          <h1 class="hero-title">{APP_TITLE}</h1>
          <p class="hero-text">{APP_TAGLINE}</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def auth_screen(conn: sqlite3.Connection) -> None:
    sign_in_tab, sign_up_tab = st.tabs(["Sign In", "Create Account"])
    with sign_in_tab:
        with st.form("sign-in-form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign In", use_container_width=True)
            if submitted:
                try:
                    user = session.sign_in(conn, email, password)
                except AuthError as exc:
                    st.error(str(exc))
                else:
                    session.remember(user)
                    st.rerun()

    with sign_up_tab:
        with st.form("sign-up-form"):
            email = st.text_input("Email", key="sign-up-email")
            password = st.text_input("Password", type="password", key="sign-up-password")
            confirm = st.text_input("Confirm password", type="password")
            submitted = st.form_submit_button("Create Account", use_container_width=True)
            if submitted:
                if password != confirm:
                    st.error("Passwords do not match")
                else:
                    try:
                        user = session.sign_up(conn, email, password)
                    except AuthError as exc:
                        st.error(str(exc))
                    else:
                        session.remember(user)
                        st.rerun()


def counter_tab(conn: sqlite3.Connection, user: User) -> None:
    count = counter.get_today(conn, user.id)
    change = trends.percentage_change(trends.trend_range(conn, user.id, 7))

    st.markdown(
        "<div class='count-card'>"
        f"<p class='count-value'>{count}</p>"
        f"<p class='count-label'>{'deed' if count == 1 else 'deeds'} tracked today</p>"
        "</div>",
        unsafe_allow_html=True,
    )
    if change is not None:
        arrow = "↓" if change < 0 else "↑"
        st.caption(f"{arrow} {abs(change):.1f}% compared with yesterday")

    minus_col, plus_col = st.columns(2)
    with minus_col:
        if st.button("− Remove", use_container_width=True, disabled=count <= 0):
            counter.decrement(conn, user.id)
            st.rerun()
    with plus_col:
        if st.button("+ Add", use_container_width=True):
            counter.increment(conn, user.id)
            st.rerun()


def render_result(result: VerificationResult) -> None:
    meta = VERDICT_META[result.verdict]
    st.markdown(
        f"<div class='verdict-card' style='--verdict-color: {meta['color']}'>"
        f"<p class='verdict-title'>{meta['icon']} {escape(VERDICT_LABELS[result.verdict])}</p>"
        f"<p class='verdict-summary'>{escape(result.summary)}</p>"
        "</div>",
        unsafe_allow_html=True,
    )
    st.markdown("#### Evidence")
    for item in result.evidence:
        st.markdown(
            "<div class='evidence-card'>"
            f"<p class='evidence-source'>{escape(item.source)}</p>"
            f"<p class='evidence-snippet'>{escape(item.snippet)}</p>"
            "</div>",
            unsafe_allow_html=True,
        )
    if result.cross_verified:
        st.caption("Cross-checked against AlQuran.cloud.")


def checker_tab(verifier: DeedVerifier) -> None:
    st.subheader("Deed Checker")
    st.caption("Your question is not stored. Always confirm rulings with a qualified scholar.")

    with st.form("deed-form", clear_on_submit=True):
        query = st.text_area("Describe the deed", max_chars=300)
        language = st.radio(
            "Language",
            options=["en", "ar"],
            horizontal=True,
            format_func=lambda x: "English" if x == "en" else "العربية",
        )
        submitted = st.form_submit_button("Check", use_container_width=True)

    if submitted:
        try:
            with st.spinner("Checking sources..."):
                st.session_state.deed_result = verifier.verify(query, language)
        except InvalidQueryError as exc:
            st.warning(str(exc))

    result = st.session_state.get("deed_result")
    if isinstance(result, VerificationResult):
        render_result(result)


def trends_tab(conn: sqlite3.Connection, user: User) -> None:
    st.subheader("Trends")
    days = st.radio(
        "Period",
        options=list(trends.PERIODS),
        horizontal=True,
        index=0,
        format_func=lambda x: PERIOD_LABELS[x],
    )
    points = trends.trend_range(conn, user.id, int(days))
    df = trends.trend_frame(points)

    m1, m2 = st.columns(2)
    m1.metric("Total", int(df["Count"].sum()))
    m2.metric("Daily average", f"{df['Count'].mean():.1f}")

    line = alt.Chart(df).mark_line(point=days <= 30, color="#1F7A5C").encode(
        x=alt.X("Date:T", title=None, axis=alt.Axis(format="%b %d", labelAngle=0)),
        y=alt.Y("Count:Q", title=None, axis=alt.Axis(grid=True, tickMinStep=1)),
        tooltip=[alt.Tooltip("Date:T", format="%Y-%m-%d"), "Count:Q"],
    )
    st.altair_chart(
        line.properties(height=300).configure_axis(gridColor="#d9e8de"),
        use_container_width=True,
    )


def main() -> None:
    st.set_page_config(page_title=APP_TITLE, page_icon="🕌", layout="centered")
    apply_styles()
    conn = get_conn()

    top_section()
    user = session.current_user()
    if user is None:
        auth_screen(conn)
        return

    top_left, top_right = st.columns([3, 1])
    with top_left:
        st.caption(f"Signed in as {user.email}")
    with top_right:
        if st.button("Sign Out", use_container_width=True):
            session.sign_out()
            st.session_state.pop("deed_result", None)
            st.toast("You have been signed out. Fī amānillāh")
            st.rerun()

    try:
        tabs = st.tabs(["Counter", "Checker", "Trends"])
        with tabs[0]:
            counter_tab(conn, user)
        with tabs[1]:
            checker_tab(get_verifier())
        with tabs[2]:
            trends_tab(conn, user)
    except sqlite3.Error:
        logger.exception("Counter store unavailable")
        st.error("Could not reach your saved counts. Please try again shortly.")


if __name__ == "__main__":
    main()
