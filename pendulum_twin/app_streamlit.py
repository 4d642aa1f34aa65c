from __future__ import annotations

import time
from typing import Optional

import plotly.graph_objects as go
import streamlit as st

from pendulum_twin.config import SimulationConfig
from pendulum_twin.events import SampleRecorder
from pendulum_twin.logging_config import setup_logging
from pendulum_twin.params import (
    DAMPING_RANGE,
    GRAVITY_PRESETS,
    LENGTH_CM_RANGE,
    MASS_RANGE,
    preset_index_for,
)
from pendulum_twin.pose import Pose
from pendulum_twin.simulator import PendulumSimulator

# cap on ticks per rerun so a stalled browser does not fast-forward the swing
MAX_TICKS_PER_RERUN = 10
REFRESH_SECONDS = 0.033


class PlotlyRenderer:
    """Keeps the latest pose and turns it into a Plotly figure."""

    def __init__(self) -> None:
        self.pose: Optional[Pose] = None

    def apply_pose(self, pose: Pose) -> None:
        self.pose = pose

    def figure(self, sim: PendulumSimulator) -> go.Figure:
        pose = self.pose if self.pose is not None else sim.pose
        (ox, oy, _), (bx, by, _) = pose.rope
        max_len = max(0.1, sim.params.length_m)
        pad = max_len * 0.2

        fig = go.Figure()

        # rope
        fig.add_trace(go.Scatter(x=[ox, bx], y=[oy, by], mode="lines", line=dict(color="#374151", width=4), hoverinfo="skip", showlegend=False))

        # trail as faded line (single color)
        if sim.trail_enabled and len(sim.trail_points) > 1:
            trail_x = [p[0] for p in sim.trail_points]
            trail_y = [p[1] for p in sim.trail_points]
            fig.add_trace(go.Scatter(x=trail_x, y=trail_y, mode="lines", line=dict(color="rgba(31,119,180,0.6)", width=2), hoverinfo="skip", showlegend=False))

        # bob, red while held
        bob_color = "#DC2626" if sim.held else "#2563EB"
        fig.add_trace(go.Scatter(x=[bx], y=[by], mode="markers", marker=dict(size=18, color=bob_color), hoverinfo="skip", showlegend=False))

        # pivot
        fig.add_trace(go.Scatter(x=[ox], y=[oy], mode="markers", marker=dict(size=10, color="#1F2937"), hoverinfo="skip", showlegend=False))

        fig.update_layout(
            template="plotly_white",
            margin=dict(l=20, r=20, t=20, b=20),
            xaxis=dict(scaleanchor="y", scaleratio=1.0, range=[-max_len - pad, max_len + pad], showgrid=True, zeroline=False),
            yaxis=dict(range=[-max_len - pad, max_len + pad], showgrid=True, zeroline=False),
            dragmode=False,
        )
        return fig


def _graph_figure(recorder: SampleRecorder) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=recorder.times, y=recorder.angles_deg, mode="lines", name="Angle (deg)"))
    fig.add_trace(go.Scatter(x=recorder.times, y=recorder.velocities, mode="lines", name="ω (rad/s)", yaxis="y2"))
    fig.update_layout(
        template="plotly_white",
        margin=dict(l=20, r=20, t=20, b=20),
        xaxis=dict(title="t (s)"),
        yaxis=dict(title="Angle (deg)"),
        yaxis2=dict(title="ω (rad/s)", overlaying="y", side="right"),
        legend=dict(orientation="h"),
    )
    return fig


def _ensure_session() -> PendulumSimulator:
    if "sim" not in st.session_state:
        cfg = SimulationConfig.from_env()
        setup_logging(cfg.log_level)
        renderer = PlotlyRenderer()
        recorder = SampleRecorder()
        sim = PendulumSimulator.from_config(cfg, renderer=renderer)
        sim.subscribe(recorder)
        st.session_state.sim = sim
        st.session_state.renderer = renderer
        st.session_state.recorder = recorder
        st.session_state.fixed_dt = cfg.fixed_dt
        st.session_state.accumulator = 0.0
        st.session_state.last_time = time.time()
    return st.session_state.sim


def _update_params_from_sidebar(sim: PendulumSimulator) -> None:
    mass = st.sidebar.slider("Mass (kg)", min_value=MASS_RANGE.minimum, max_value=MASS_RANGE.maximum, value=MASS_RANGE.clamp(sim.params.mass_kg), step=MASS_RANGE.step, format="%.1f")
    if mass != sim.params.mass_kg:
        sim.set_mass(mass)

    length_cm = st.sidebar.slider("Length (cm)", min_value=LENGTH_CM_RANGE.minimum, max_value=LENGTH_CM_RANGE.maximum, value=LENGTH_CM_RANGE.clamp(sim.params.length_cm), step=LENGTH_CM_RANGE.step, format="%.0f")
    if length_cm != sim.params.length_cm:
        sim.set_length(length_cm)

    damping = st.sidebar.slider("Damping (1/s)", min_value=DAMPING_RANGE.minimum, max_value=DAMPING_RANGE.maximum, value=DAMPING_RANGE.clamp(sim.params.damping), step=DAMPING_RANGE.step, format="%.3f")
    if damping != sim.params.damping:
        sim.set_damping(damping)

    labels = [p.label for p in GRAVITY_PRESETS]
    current = preset_index_for(sim.params.gravity)
    label = st.sidebar.selectbox("Gravity", labels, index=current)
    index = labels.index(label)
    if GRAVITY_PRESETS[index].value != sim.params.gravity:
        sim.select_gravity_preset(index)

    trail_enabled = st.sidebar.checkbox("Show trail", value=bool(sim.trail_enabled))
    sim.trail_enabled = bool(trail_enabled)
    if st.sidebar.button("Clear trail"):
        sim.trail_points.clear()


def _grab_controls(sim: PendulumSimulator) -> None:
    st.subheader("Grab")
    bx, by, _ = sim.pose.bob
    col_x, col_y = st.columns(2)
    with col_x:
        x = st.number_input("Bob x (m)", value=float(bx), step=0.01, format="%.3f")
    with col_y:
        y = st.number_input("Bob y (m)", value=float(by), step=0.01, format="%.3f")
    if not sim.held:
        if st.button("Grab bob"):
            sim.notify_grab_start()
    else:
        sim.drag_to(x, y)
        if st.button("Release", type="primary"):
            sim.notify_grab_end((x, y))


def _advance(sim: PendulumSimulator) -> None:
    """Run the fixed ticks owed since the last rerun."""
    fixed_dt = float(st.session_state.fixed_dt)
    now = time.time()
    elapsed = max(0.0, now - float(st.session_state.last_time))
    st.session_state.last_time = now
    acc = min(float(st.session_state.accumulator) + elapsed, fixed_dt * MAX_TICKS_PER_RERUN)
    while acc >= fixed_dt:
        sim.step(fixed_dt)
        acc -= fixed_dt
    st.session_state.accumulator = acc


def main() -> None:
    st.set_page_config(page_title="Pendulum Twin", layout="wide")
    sim = _ensure_session()
    renderer: PlotlyRenderer = st.session_state.renderer
    recorder: SampleRecorder = st.session_state.recorder

    st.title("Pendulum Twin")
    st.caption("Damped simple pendulum, semi-implicit Euler at a fixed tick")

    _update_params_from_sidebar(sim)

    col_a, col_b, col_c = st.columns([1, 1, 1])
    with col_a:
        if not sim.running:
            if st.button("Start", type="primary"):
                sim.start()
        else:
            if st.button("Stop", type="secondary"):
                sim.stop()
    with col_b:
        if st.button("Reset"):
            sim.reset()
            recorder.clear()
    with col_c:
        st.metric("ΔE/E", f"{sim.energy_err * 100.0:.3f}%")

    _grab_controls(sim)
    _advance(sim)

    left, right = st.columns([1, 1])
    with left:
        st.plotly_chart(renderer.figure(sim), use_container_width=True, config={"staticPlot": False, "displayModeBar": False})
    with right:
        st.plotly_chart(_graph_figure(recorder), use_container_width=True, config={"displayModeBar": False})

    with st.expander("Details (State)", expanded=False):
        st.write({
            "angle_deg": sim.angle_deg,
            "angular_velocity": sim.angular_velocity,
            "running": sim.running,
            "held": sim.held,
            "params": {
                "length_cm": sim.params.length_cm,
                "mass_kg": sim.params.mass_kg,
                "gravity": sim.params.gravity,
                "damping": sim.params.damping,
            },
            "sim_time": sim.sim_time,
            "energy_err": sim.energy_err,
            "trail_len": len(sim.trail_points),
            "subscribers": sim.events.subscriber_count(),
        })

    if sim.running and not sim.held:
        time.sleep(REFRESH_SECONDS)
        st.rerun()


if __name__ == "__main__":
    main()
