# app.py
import asyncio

import plotly.graph_objects as go
import streamlit as st

from clustergraph.builder import build_graph, score_range
from clustergraph.config import load_settings, save_settings
from clustergraph.layout import ForceLayout
from clustergraph.memory_source import demo_cluster_group
from clustergraph.node import NodeKind

st.set_page_config(page_title="Cluster Graph (Web)", layout="wide")

# Session state
if 'group' not in st.session_state:
    st.session_state.group = demo_cluster_group()

group = st.session_state.group
settings = load_settings(group)

# UI
col_btns, col_plot = st.columns([1, 4], gap="large")

with col_btns:
    st.markdown("### Controls")
    threshold = st.slider("Min Relevance (%)", 0, 100, int(settings.threshold * 100)) / 100.0
    if st.button("Rebuild Clusters"):
        group.build_groups()
    if st.button("New Demo Vault"):
        st.session_state.group = group = demo_cluster_group(seed=len(group.items) + group.save_count)
    st.divider()

    # Manual create
    item_keys = [i.key for i in group.items]
    picked = st.multiselect("Centers for a new cluster", item_keys)
    if st.button("Create Cluster") and picked:
        cluster = asyncio.run(group.create_or_update({"center": {k: {"weight": 1} for k in picked}}))
        group.add_cluster(cluster)
    st.divider()

# Threshold is stored per group, like the desktop window does
settings = load_settings(group)
if threshold != settings.threshold:
    settings.threshold = threshold
    save_settings(group, settings)

snapshot = asyncio.run(group.get_snapshot(group.items))
data = build_graph(snapshot, threshold)
layout = ForceLayout(settings.layout)
if not data.is_empty():
    layout.set_graph(data.nodes, data.links)
    layout.stabilize()

with col_btns:
    stats = data.get_stats()
    st.markdown(
        f"Clusters: {stats['clusters']}  \n"
        f"Centers: {stats['centers']}  \n"
        f"Members: {stats['members']}  \n"
        f"Links: {stats['links']}"
    )

COLORS = {
    NodeKind.CLUSTER: settings.cluster_color,
    NodeKind.CENTER: settings.center_color,
    NodeKind.MEMBER: settings.member_color,
}

# --------- Build Plotly figure ----------
with col_plot:
    if data.is_empty():
        st.info("No clusters to display")
    else:
        fig = go.Figure()
        lo, hi = score_range(data.links)
        span = (hi - lo) or 1.0

        # Draw links, one trace each so width can follow the score
        for l in data.links:
            (x1, y1), (x2, y2) = l.source.position(), l.target.position()
            t = (l.score - lo) / span
            width = settings.min_link_thickness + (settings.max_link_thickness - settings.min_link_thickness) * t
            fig.add_trace(go.Scatter(
                x=[x1, x2], y=[y1, y2],
                mode='lines',
                line=dict(color=settings.link_color, width=width),
                hoverinfo='skip',
                showlegend=False
            ))

        # Draw nodes, one trace per kind
        for kind in NodeKind:
            nodes = [n for n in data.nodes if n.kind == kind]
            if not nodes:
                continue
            fig.add_trace(go.Scatter(
                x=[n.position()[0] for n in nodes],
                y=[n.position()[1] for n in nodes],
                mode='markers',
                text=[n.label for n in nodes],
                hovertemplate="%{text}<extra>" + kind.value + "</extra>",
                marker=dict(size=[2 * n.radius for n in nodes], color=COLORS[kind], line=dict(width=0)),
                name=kind.value,
            ))

        fig.update_yaxes(scaleanchor="x", scaleratio=1, autorange="reversed")
        fig.update_layout(
            margin=dict(l=20, r=20, t=10, b=10),
            xaxis=dict(visible=False), yaxis=dict(visible=False),
            plot_bgcolor=settings.background_color,
            dragmode='pan', height=700
        )
        st.plotly_chart(fig, use_container_width=True)
