"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from minddigest.api.routes import router

INDEX_HTML = """
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>MindDigest</title>
    <style>
      body {
        margin: 0 auto;
        max-width: 880px;
        padding: 32px 24px;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        color: #23324a;
      }

      button {
        border: none;
        border-radius: 8px;
        padding: 10px 18px;
        font-weight: 600;
        cursor: pointer;
        background: #2f6fdb;
        color: white;
      }

      button:disabled {
        opacity: 0.6;
        cursor: wait;
      }

      article {
        border-bottom: 1px solid #dde3ee;
        padding: 16px 0;
      }

      article p {
        white-space: pre-line;
      }

      .meta {
        color: #6b778c;
        font-size: 0.9rem;
      }
    </style>
  </head>
  <body>
    <h1>MindDigest</h1>
    <p>Science news collected from the configured sites.</p>
    <button id="crawl">Crawl now</button>
    <span id="status" class="meta"></span>
    <section id="entries"></section>
    <script>
      const entries = document.getElementById("entries");
      const statusLabel = document.getElementById("status");
      const crawlButton = document.getElementById("crawl");

      function render(items) {
        entries.innerHTML = "";
        for (const item of items) {
          const article = document.createElement("article");
          const title = document.createElement("h3");
          const link = document.createElement("a");
          link.href = item.source_url;
          link.textContent = item.title;
          title.appendChild(link);
          const meta = document.createElement("div");
          meta.className = "meta";
          meta.textContent = item.author || "Unknown author";
          const summary = document.createElement("p");
          summary.textContent = item.summary;
          article.append(title, meta, summary);
          entries.appendChild(article);
        }
      }

      async function loadEntries() {
        const response = await fetch("/api/entries");
        render(await response.json());
      }

      crawlButton.addEventListener("click", async () => {
        crawlButton.disabled = true;
        statusLabel.textContent = "Crawling...";
        try {
          const response = await fetch("/api/crawl", { method: "POST" });
          const payload = await response.json();
          statusLabel.textContent = response.ok
            ? `${payload.stored.length} new, ${payload.duplicates.length} already known`
            : payload.detail;
          await loadEntries();
        } finally {
          crawlButton.disabled = false;
        }
      });

      loadEntries();
    </script>
  </body>
</html>
"""


def create_app() -> FastAPI:
    app = FastAPI(title="MindDigest", description="Science news digest crawler API")
    app.include_router(router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return INDEX_HTML

    return app


app = create_app()
