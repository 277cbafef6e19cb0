import plotly.express as px
import pandas as pd

def export_miss_rate_chart(levels, path: str):
    if not levels:
        with open(path, "w") as f:
            f.write("<h1>Cache Miss Rates</h1><p>No data to display.</p>")
        return

    df = pd.DataFrame(levels)
    df['miss_rate_pct'] = pd.to_numeric(df['miss_rate_pct'], errors='coerce')
    # Levels that were never probed have no miss rate
    df = df.dropna(subset=['miss_rate_pct'])
    if df.empty:
        with open(path, "w") as f:
            f.write("<h1>Cache Miss Rates</h1><p>No data to display.</p>")
        return

    hover_data_cols = ['policy', 'accesses', 'hits', 'misses']
    existing_hover_cols = [c for c in hover_data_cols if c in df.columns]

    fig = px.bar(
        df,
        x="name",
        y="miss_rate_pct",
        color="policy" if "policy" in df.columns else None,
        text="miss_rate_pct",
        hover_data=existing_hover_cols,
        title="Cache Hierarchy Miss Rates",
        labels={"name": "Cache Level", "miss_rate_pct": "Miss Rate (%)", "policy": "Policy"}
    )

    fig.update_traces(texttemplate="%{text:.2f}%", textposition="outside")
    fig.update_yaxes(range=[0, 105])
    fig.update_layout(
        font=dict(family="Courier New, monospace", size=12),
        legend_title="Policy"
    )

    fig.write_html(path, include_plotlyjs="cdn", full_html=True)

def export_miss_rate_ascii(levels, width: int = 50):
    rows = [lvl for lvl in levels if lvl.get('miss_rate_pct') is not None]
    if not rows:
        return "No cache accesses recorded."

    chart = "Cache Miss Rates (ASCII Chart)\n"
    chart += ("-" * (width + 20)) + "\n"
    for lvl in rows:
        rate = lvl['miss_rate_pct']
        filled = int(round(rate / 100.0 * width))
        bar = "#" * filled + "-" * (width - filled)
        chart += f"{lvl['name']:>6} |{bar}| {rate:6.2f}%\n"
    chart += ("-" * (width + 20)) + "\n"

    return chart
