"""flappy-es dashboard — watch the evolutionary strategy learn.

A Streamlit application that trains a population generation by
generation and charts its progress.

Run with::

    streamlit run src/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import streamlit as st

# Ensure src/ is on sys.path so the flappy_es package can be
# imported without installing the project.
_SRC_ROOT = Path(__file__).resolve().parent
if str(_SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(_SRC_ROOT))

from flappy_es import (  # noqa: E402
    ConfigurationError,
    ESConfig,
    HistoryRecorder,
    Population,
)
from flappy_es.reporting import plot_fitness_history  # noqa: E402


# ================================================================
# Session-state initialisation
# ================================================================

def _init_session_state() -> None:
    """Initialise all session-state keys on first run."""
    defaults: Dict[str, object] = {
        "population": None,
        "history": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _sidebar_config() -> ESConfig:
    """Collect the run configuration from the sidebar widgets."""
    st.sidebar.header("Configuration")
    population_size = st.sidebar.number_input(
        "Population size", min_value=2, max_value=2048, value=128, step=16
    )
    num_elites = st.sidebar.number_input(
        "Elites", min_value=0, max_value=2048, value=8, step=1
    )
    hidden = st.sidebar.text_input("Hidden layer widths", value="8, 8")
    eps = st.sidebar.slider("Mutation eps", 0.0, 1.0, 0.1, 0.01)
    alpha = st.sidebar.slider("Blend alpha", 0.0, 1.0, 0.05, 0.01)
    seed = st.sidebar.number_input("Seed", min_value=0, value=0, step=1)

    hidden_sizes: List[int] = [
        int(part) for part in hidden.replace(" ", "").split(",") if part
    ]
    return ESConfig(
        population_size=int(population_size),
        num_elites=int(num_elites),
        layer_sizes=[2, *hidden_sizes, 1],
        eps=float(eps),
        alpha=float(alpha),
        seed=int(seed),
    )


def start_run(config: ESConfig) -> None:
    """Create a fresh population, replacing any previous run."""
    history = HistoryRecorder()
    st.session_state.population = Population(config, observers=[history])
    st.session_state.history = history


def train(generations: int) -> None:
    """Advance the current run by ``generations`` generations."""
    population: Population = st.session_state.population
    progress = st.progress(0.0)
    for done in range(generations):
        population.run_generation()
        progress.progress((done + 1) / generations)


# ################################################################
#  Main entry point
# ################################################################

def main() -> None:
    """Entry point — configure, train and inspect a run."""
    st.set_page_config(
        page_title="flappy-es",
        page_icon="🐦",
        layout="wide",
    )

    _init_session_state()

    st.title("🐦 flappy-es: Evolving Flappy Birds")

    try:
        config = _sidebar_config().validate()
    except (ConfigurationError, ValueError) as e:
        st.sidebar.error(str(e))
        return

    col_new, col_train = st.columns(2)
    with col_new:
        if st.button("New run") or st.session_state.population is None:
            start_run(config)
    with col_train:
        generations = st.number_input(
            "Generations per click", min_value=1, max_value=500, value=10
        )
        if st.button("Train"):
            train(int(generations))

    population: Population = st.session_state.population
    history: HistoryRecorder = st.session_state.history

    m1, m2, m3 = st.columns(3)
    m1.metric("Generation", population.generation)
    m2.metric("Highscore (pipes)", f"{population.highscore:.2f}")
    best = population.best_fitness
    m3.metric("Best fitness", f"{best:.2f}" if history.rows else "—")

    if history.rows:
        st.pyplot(plot_fitness_history(history.rows))
        st.dataframe(history.rows[::-1])
    else:
        st.info("Press **Train** to run the first generations.")


if __name__ == "__main__":
    main()
