import typing as t
from pathlib import Path

import numpy as np
import polars as pl

# Use Agg backend for non-interactive plotting
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.axes import Axes  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402
from wordcloud import WordCloud  # noqa: E402

from LdaReport.aggregation import prepare_plot_values  # noqa: E402
from LdaReport.assignments import documentsums  # noqa: E402
from LdaReport.logging_config import get_logger  # noqa: E402
from LdaReport.models import (  # noqa: E402
    DateInterval,
    DocumentTermMatrix,
    FittedTopicModel,
    ReportConfig,
    TopicWordDistribution,
    ValueMode,
    WordScore,
)
from LdaReport.time_buckets import as_time_var  # noqa: E402

logger = get_logger(__name__)

LINE_COLOR = "darkgrey"
BOOTSTRAP_CSS = (
    "https://cdnjs.cloudflare.com/ajax/libs/twitter-bootstrap/3.2.0/css/bootstrap.min.css"
)


def top_terms(model: FittedTopicModel, topic_nr: int, n: int = 100) -> TopicWordDistribution:
    """
    The ``n`` terms with the highest posterior weight for a topic.

    Missing weights are skipped. Anything after a ``/`` in a term (e.g. a
    part-of-speech tag as in ``run/VERB``) is left out of the label; terms that
    end up with the same label have their weights added.
    """
    model.check_topic(topic_nr)
    weights = model.topic_term[topic_nr - 1]
    order = np.argsort(-weights, kind="stable")[:n]

    scores: dict[str, float] = {}
    for j in order:
        weight = weights[j]
        if np.isnan(weight):
            continue
        label = model.terms[j].split("/", 1)[0]
        scores[label] = scores.get(label, 0.0) + float(weight)

    return TopicWordDistribution(
        topic_id=topic_nr,
        word_scores=[WordScore(word=w, score=s) for w, s in scores.items()],
    )


def plot_time(
    model: FittedTopicModel,
    topic_nr: int,
    time_var: t.Any,
    date_interval: DateInterval = "day",
    pct: bool = False,
    value: ValueMode = "relative",
    ax: Axes | None = None,
    docsums: np.ndarray | None = None,
) -> pl.DataFrame:
    """Plot the attention for a topic over time and return the plotted values."""
    time_var = as_time_var(time_var)
    if docsums is None:
        docsums = documentsums(model)

    d = prepare_plot_values(
        docsums, time_var.bucket(date_interval), topic_nr, pct=pct, value=value
    )
    d = time_var.fill_gaps(d, date_interval).rename({"label": "time"})

    if ax is None:
        ax = plt.gca()
    ax.plot(d["time"].to_list(), d["value"].to_list(), color=LINE_COLOR, linewidth=5)
    top = d["value"].max() if d.height else None
    ax.set_ylim(0, top or 1)
    ax.spines[["top", "right"]].set_visible(False)
    return d


def plot_category(
    model: FittedTopicModel,
    topic_nr: int,
    category_var: t.Any,
    pct: bool = False,
    value: ValueMode = "total",
    ax: Axes | None = None,
    docsums: np.ndarray | None = None,
) -> pl.DataFrame:
    """Plot the attention for a topic per category and return the plotted values."""
    if docsums is None:
        docsums = documentsums(model)
    d = prepare_plot_values(docsums, category_var, topic_nr, pct=pct, value=value)
    d = d.rename({"label": "category"})

    if ax is None:
        ax = plt.gca()
    labels = [str(c) for c in d["category"].to_list()]
    ax.bar(labels, d["value"].to_list(), color=LINE_COLOR)
    ax.tick_params(axis="x", labelrotation=90)
    return d


def plot_wordcloud(
    model: FittedTopicModel,
    topic_nr: int,
    ax: Axes | None = None,
    n: int = 100,
    **wordcloud_kwargs,
) -> TopicWordDistribution:
    """
    Plot a wordcloud of the top terms of a topic.

    Extra keyword arguments are passed to ``wordcloud.WordCloud``
    (e.g. ``colormap``, ``background_color``).
    """
    dist = top_terms(model, topic_nr, n=n)
    freqs = {w: s for w, s in dist.as_frequencies().items() if s > 0}

    if ax is None:
        ax = plt.gca()
    ax.axis("off")
    if not freqs:
        logger.warning(f"Topic {topic_nr} has no positive term weights, wordcloud left empty")
        return dist

    options = {
        "width": 960,
        "height": 600,
        "background_color": "white",
        "colormap": "viridis",
        "random_state": 42,
        **wordcloud_kwargs,
    }
    wc = WordCloud(**options).generate_from_frequencies(freqs)
    ax.imshow(wc, interpolation="bilinear")
    return dist


def plot_topic(
    model: FittedTopicModel,
    topic_nr: int,
    time_var: t.Any,
    category_var: t.Any,
    date_interval: DateInterval = "day",
    pct: bool = False,
    value: ValueMode = "relative",
    docsums: np.ndarray | None = None,
    figsize: tuple[float, float] = (12.8, 8.0),
    n: int = 100,
    **wordcloud_kwargs,
) -> Figure:
    """Combined view of one topic: time series on top, wordcloud and category bars below."""
    model.check_topic(topic_nr)
    if docsums is None:
        docsums = documentsums(model)

    fig = plt.figure(figsize=figsize, dpi=100, layout="constrained")
    grid = fig.add_gridspec(2, 2, width_ratios=[3, 1], height_ratios=[1, 3])
    time_ax = fig.add_subplot(grid[0, :])
    cloud_ax = fig.add_subplot(grid[1, 0])
    category_ax = fig.add_subplot(grid[1, 1])

    plot_time(
        model, topic_nr, time_var, date_interval, pct=pct, value=value,
        ax=time_ax, docsums=docsums,
    )
    plot_wordcloud(model, topic_nr, ax=cloud_ax, n=n, **wordcloud_kwargs)
    plot_category(
        model, topic_nr, category_var, pct=pct, value=value,
        ax=category_ax, docsums=docsums,
    )
    return fig


def plot_all_topics(
    model: FittedTopicModel,
    time_var: t.Any,
    category_var: t.Any,
    path: str | Path,
    config: ReportConfig | None = None,
    weight_by_dtm: DocumentTermMatrix | None = None,
    docsums: np.ndarray | None = None,
    n: int | None = None,
    **wordcloud_kwargs,
) -> str | None:
    """
    Write ``1.png`` .. ``K.png`` with ``plot_topic`` into ``path``, then an index page.

    The index is written last; if writing an image fails the error propagates
    and no index is produced.

    Args:
        docsums: Precomputed topic-document counts; computed once from
            ``weight_by_dtm`` when not given
        n: Terms per wordcloud, defaults to ``config.top_n_terms``

    Returns:
        The index HTML, or None when ``config.create_index`` is False
    """
    config = config or ReportConfig()
    if docsums is not None and weight_by_dtm is not None:
        raise ValueError("Pass either docsums or weight_by_dtm, not both")
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)

    time_var = as_time_var(time_var)
    if docsums is None:
        docsums = documentsums(model, weight_by_dtm)
    n = config.top_n_terms if n is None else n
    figsize = (config.width / 100, config.height / 100)

    for topic_nr in range(1, model.k + 1):
        logger.info(f"Plotting topic {topic_nr}/{model.k}")
        fig = plot_topic(
            model,
            topic_nr,
            time_var,
            category_var,
            date_interval=config.date_interval,
            pct=config.pct,
            value=config.value,
            docsums=docsums,
            figsize=figsize,
            n=n,
            **wordcloud_kwargs,
        )
        try:
            fig.savefig(path / f"{topic_nr}.png", dpi=100)
        finally:
            plt.close(fig)

    if not config.create_index:
        return None
    index = create_index(model.k)
    fn = path / "index.html"
    fn.write_text(index, encoding="utf-8")
    logger.info(f"Writing {fn}")
    return index


def create_index(k: int) -> str:
    """Static page showing ``1.png`` .. ``k.png`` as a grid of thumbnails."""
    html = [
        "<html>",
        f'<head><link href="{BOOTSTRAP_CSS}" rel="stylesheet"></head>',
        '<body><div class="row">',
    ]
    for i in range(1, k + 1):
        html.append(
            f'<div class="col-xs-6 col-md-2 col-lg-3"><a href="{i}.png" class="thumbnail">'
            f'<img src="{i}.png"></a></div>'
        )
    html.append("</div></body></html>")
    return "\n".join(html)
