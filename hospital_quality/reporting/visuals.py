import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
from typing import Dict, Optional

from sklearn.decomposition import PCA

from hospital_quality.core.rating import PerformanceCategory
from hospital_quality.utils.logger import get_logger

log = get_logger("visuals")

DPI = 150


def _save(fig, out: Path) -> Optional[Path]:
    out = Path(out).resolve()
    fig.tight_layout()
    fig.savefig(str(out), dpi=DPI)
    plt.close(fig)

    if out.exists() and out.stat().st_size > 0:
        return out
    return None


def quality_distribution(df, out):
    fig, ax = plt.subplots(figsize=(7, 4))
    sns.histplot(df["quality_score"].dropna(), bins=30, kde=True, ax=ax, color="steelblue")
    ax.axvline(df["quality_score"].mean(), color="red", linestyle="--", label="Mean")
    ax.set_title("Distribution of Healthcare Quality Scores")
    ax.set_xlabel("Quality Score (0-100)")
    ax.set_ylabel("Number of Hospitals")
    ax.legend()
    return _save(fig, out)


def star_rating_distribution(df, out):
    counts = df["star_rating"].value_counts().reindex(range(1, 6), fill_value=0)

    fig, ax = plt.subplots(figsize=(6, 4))
    sns.barplot(x=list(counts.index), y=counts.values, ax=ax, color="goldenrod")
    ax.set_title("Hospital Star Rating Distribution")
    ax.set_xlabel("Star Rating")
    ax.set_ylabel("Number of Hospitals")
    return _save(fig, out)


def performance_categories(df, out):
    order = PerformanceCategory.ordered_labels()
    counts = df["performance_category"].astype(str).value_counts().reindex(order, fill_value=0)

    fig, ax = plt.subplots(figsize=(7, 4))
    sns.barplot(x=counts.values, y=order, ax=ax, color="seagreen")
    ax.set_title("Hospitals by Performance Category")
    ax.set_xlabel("Number of Hospitals")
    ax.set_ylabel("")
    return _save(fig, out)


def state_comparison(state_summary, out, top: int = 15):
    data = state_summary.head(top)

    fig, ax = plt.subplots(figsize=(7, 5))
    sns.barplot(x=data["avg_quality_score"], y=data["state"], ax=ax, color="steelblue")
    ax.set_title(f"Top {len(data)} States by Average Quality Score")
    ax.set_xlabel("Average Quality Score")
    ax.set_ylabel("State")
    return _save(fig, out)


def elbow_silhouette(k_table, out, operational_k: Optional[int] = None):
    """Within SS (elbow) and mean silhouette against k on twin axes."""
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(k_table["k"], k_table["wss"], "o-", color="steelblue", label="Within SS")
    ax.set_xlabel("Number of Clusters (k)")
    ax.set_ylabel("Total Within-Cluster Sum of Squares")

    ax2 = ax.twinx()
    ax2.plot(k_table["k"], k_table["silhouette"], "s--", color="darkorange", label="Silhouette")
    ax2.set_ylabel("Mean Silhouette")

    if operational_k is not None:
        ax.axvline(operational_k, color="red", linestyle=":", alpha=0.6)

    ax.set_title("Elbow Method and Silhouette for k")
    return _save(fig, out)


def cluster_scatter(clustering_data, labels, out, method: str):
    """Clusters on the first two principal components of the scaled scores."""
    if clustering_data.n_samples < 2:
        return None

    coords = PCA(n_components=2).fit_transform(clustering_data.scaled)

    fig, ax = plt.subplots(figsize=(7, 5))
    sns.scatterplot(x=coords[:, 0], y=coords[:, 1], hue=labels, palette="tab10", ax=ax, s=20)
    ax.set_title(f"Hospital Clusters ({method})")
    ax.set_xlabel("PC1")
    ax.set_ylabel("PC2")
    ax.legend(title="Cluster")
    return _save(fig, out)


# -------------------------------------------------
# FULL PLOT SET
# -------------------------------------------------
def create_visualizations(result, plots_dir) -> Dict[str, str]:
    """Render every plot for a PipelineResult; returns name -> path."""
    plots_dir = Path(plots_dir)
    plots_dir.mkdir(parents=True, exist_ok=True)
    log.info("Creating visualizations in %s", plots_dir)

    rendered = {
        "quality_score_distribution": quality_distribution(
            result.ratings, plots_dir / "quality_score_distribution.png"
        ),
        "star_rating_distribution": star_rating_distribution(
            result.ratings, plots_dir / "star_rating_distribution.png"
        ),
        "performance_categories": performance_categories(
            result.ratings, plots_dir / "performance_categories.png"
        ),
        "state_comparison": state_comparison(
            result.state_summary, plots_dir / "state_comparison.png"
        ),
    }

    analysis = result.clustering
    if analysis is not None:
        rendered["elbow_plot"] = elbow_silhouette(
            analysis.k_selection.table, plots_dir / "elbow_plot.png", operational_k=analysis.k
        )
        for method, clusters in (
            ("kmeans", analysis.kmeans),
            ("hierarchical", analysis.hierarchical),
        ):
            rendered[f"cluster_visualization_{method}"] = cluster_scatter(
                analysis.data,
                clusters.labels,
                plots_dir / f"cluster_visualization_{method}.png",
                method,
            )

    return {name: str(path) for name, path in rendered.items() if path is not None}
