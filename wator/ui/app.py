"""
Wa-Tor Simulator - Streamlit Web UI

Single page: set parameters in the sidebar, run a number of chronons and
watch the grid and the population curves update.
"""

import time

import streamlit as st

from wator.core.config import get_default_config
from wator.simulation.engine import SimulationEngine
from wator.simulation.metrics import MetricsCollector
from wator.ui.components.charts import (
    phase_portrait,
    population_over_time,
    predator_energy_over_time,
)
from wator.ui.components.grid_view import render_planet_grid


# Must be the very first Streamlit command
st.set_page_config(
    page_title="Wa-Tor Simulator",
    page_icon="🦈",
    layout="wide",
    initial_sidebar_state="expanded",
)


def _sidebar_config():
    """Collect simulation parameters from the sidebar."""
    config = get_default_config()
    st.sidebar.title("🦈 Wa-Tor Simulator")
    st.sidebar.markdown("---")

    config.world.width = st.sidebar.number_input("Width", 1, 500, config.world.width)
    config.world.height = st.sidebar.number_input("Height", 1, 500, config.world.height)
    config.world.seed = st.sidebar.number_input("Seed", 0, 999_999_999, config.world.seed)

    st.sidebar.subheader("Prey")
    config.prey.initial_count = st.sidebar.number_input("Initial prey", 0, 100_000, config.prey.initial_count)
    config.prey.reproduction_time = st.sidebar.number_input(
        "Prey reproduction time", 1, 1000, config.prey.reproduction_time)

    st.sidebar.subheader("Predators")
    config.predator.initial_count = st.sidebar.number_input(
        "Initial predators", 0, 100_000, config.predator.initial_count)
    config.predator.reproduction_time = st.sidebar.number_input(
        "Predator reproduction time", 1, 1000, config.predator.reproduction_time)
    config.predator.initial_energy = st.sidebar.number_input(
        "Initial energy", 1, 1000, config.predator.initial_energy)
    config.predator.food_value = st.sidebar.number_input(
        "Food value", 0, 1000, config.predator.food_value)

    st.sidebar.subheader("Population")
    config.population.max_entities = st.sidebar.number_input(
        "Max entities", 1, 1_000_000, config.population.max_entities)
    config.population.delete_unbalanced_entities = st.sidebar.number_input(
        "Purge per balancing pass", 0, 1_000_000, config.population.delete_unbalanced_entities)
    return config


def main() -> None:
    """Main entry point for the Streamlit app."""
    config = _sidebar_config()

    st.title("🦈 Wa-Tor Predator-Prey Simulation")

    col1, col2 = st.columns(2)
    chronons = col1.number_input("Chronons", 1, 1_000_000, 500, step=100)
    refresh_every = col2.number_input("Redraw every N chronons", 1, 10_000, 10)

    errors = config.validate()
    if errors:
        for err in errors:
            st.error(err)
        return

    if not st.button("🚀 Run"):
        return

    engine = SimulationEngine(config)
    engine.initialize()
    metrics = MetricsCollector(config)
    metrics.collect(engine.planet, 0)

    progress = st.progress(0.0, text="Starting simulation...")
    grid_placeholder = st.empty()
    chart_placeholder = st.empty()

    def on_chronon(chronon: int, eng: SimulationEngine) -> None:
        metrics.collect(eng.planet, chronon, eng.chronon_stats)
        if chronon % refresh_every == 0 or chronon == chronons:
            progress.progress(chronon / chronons, text=f"Chronon {chronon}/{chronons}")
            grid_placeholder.plotly_chart(
                render_planet_grid(eng.planet, chronon=chronon),
                use_container_width=True,
            )
            chart_placeholder.plotly_chart(
                population_over_time(metrics.to_dataframe()),
                use_container_width=True,
            )

    engine.on_chronon = on_chronon
    start_time = time.time()
    result = engine.run(chronons)
    elapsed = time.time() - start_time

    progress.progress(1.0, text="✅ Simulation complete!")
    df = metrics.to_dataframe()

    st.markdown("---")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Chronons", result.total_chronons)
    c2.metric("Prey", result.final_prey_count)
    c3.metric("Predators", result.final_predator_count)
    c4.metric("Elapsed", f"{elapsed:.1f}s")

    tab_phase, tab_energy, tab_data = st.tabs(["Phase portrait", "Predator energy", "Data"])
    with tab_phase:
        st.plotly_chart(phase_portrait(df), use_container_width=True)
    with tab_energy:
        st.plotly_chart(predator_energy_over_time(df), use_container_width=True)
    with tab_data:
        st.dataframe(df, use_container_width=True)
        st.download_button(
            "⬇️ Download CSV",
            data=df.to_csv(index=False),
            file_name="wator_metrics.csv",
            mime="text/csv",
        )


if __name__ == "__main__":
    main()
