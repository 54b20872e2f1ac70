"""The studio page. Renders whatever the /api/stream snapshots say."""

STUDIO_PAGE = """<!DOCTYPE html>
<html lang="ja">
<head>
<meta charset="utf-8">
<title>頑固おやじビデオジェネレーター</title>
<style>
  body { font-family: sans-serif; max-width: 960px; margin: 2rem auto; padding: 0 1rem; }
  .beats { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1rem; }
  .beat { border: 1px solid #ccc; padding: 1rem; }
  .error { color: #b00; }
  video { width: 100%; }
</style>
</head>
<body>
<h1>頑固おやじビデオジェネレーター</h1>
<p>Twitterトレンドと日本の頑固おやじをテーマに、GeminiとVeoの力でユニークなショートムービーを作成します。</p>
<main id="app"></main>
<script>
const app = document.getElementById("app");

async function post(path, body) {
  const res = await fetch(path, {
    method: "POST",
    headers: {"Content-Type": "application/json"},
    body: body ? JSON.stringify(body) : undefined,
  });
  if (!res.ok) {
    const data = await res.json().catch(() => ({}));
    console.error(path, data.detail || res.status);
  }
}

function escapeHtml(text) {
  const div = document.createElement("div");
  div.textContent = text == null ? "" : String(text);
  return div.innerHTML;
}

function render(state) {
  const s = state.app_state;
  if (s === "awaiting_key" || s === "initial") {
    app.innerHTML = `
      <h2>APIキーが必要です</h2>
      ${state.error ? `<p class="error">${escapeHtml(state.error)}</p>` : ""}
      <p>このアプリはVeoで動画を生成するためにGoogle AI APIキーが必要です。続行するにはキーを選択してください。</p>
      <input id="key" type="password" placeholder="API key">
      <button id="select">APIキーを選択</button>`;
    document.getElementById("select").onclick = () =>
      post("/api/key", {api_key: document.getElementById("key").value});
    return;
  }
  if (s === "error") {
    app.innerHTML = `
      <h2>エラーが発生しました</h2>
      <p class="error">${escapeHtml(state.error)}</p>
      <button id="reset">もう一度試す</button>`;
    document.getElementById("reset").onclick = () => post("/api/reset");
    if (!state.story_prompts) return;
  }
  if (s === "ready" || s === "fetching_trends" || s === "generating_story") {
    const busy = s !== "ready";
    app.innerHTML = `<button id="start" ${busy ? "disabled" : ""}>${busy ? "処理中..." : "トレンドを調査し物語を作成"}</button>`;
    document.getElementById("start").onclick = () => post("/api/start");
    return;
  }

  const top = state.trends[0];
  const beats = Object.entries(state.beats).map(([key, beat]) => `
    <div class="beat">
      <h3>${beat.title}</h3>
      <p><small>${escapeHtml(beat.description)}</small></p>
      <p>${escapeHtml(beat.prompt)}</p>
      ${beat.video_url
        ? `<video src="${beat.video_url}" controls></video>`
        : beat.loading
          ? `<p>${escapeHtml(beat.status)}</p>`
          : `<button data-beat="${key}">動画を生成</button>`}
    </div>`).join("");

  const panel = document.createElement("section");
  panel.innerHTML = `
    ${top ? `<h2>1. トップトレンドを検出</h2><p><b>${escapeHtml(top.name)}</b> ${escapeHtml(top.volume)}</p>` : ""}
    <h2>2. AIが生成した「起承転結」の物語</h2>
    <div class="beats">${beats}</div>
    ${state.all_videos_generated
      ? `<p>すべての動画が生成されました！</p><button id="new-story">新しい物語を作成する</button>`
      : ""}`;
  if (s !== "error") app.innerHTML = "";
  app.appendChild(panel);
  panel.querySelectorAll("button[data-beat]").forEach(btn =>
    btn.onclick = () => post(`/api/beats/${btn.dataset.beat}/generate`));
  const newStory = document.getElementById("new-story");
  if (newStory) newStory.onclick = () => post("/api/reset");
}

const source = new EventSource("/api/stream");
source.addEventListener("state", (e) => render(JSON.parse(e.data).data));
fetch("/api/state").then(r => r.json()).then(render);
</script>
</body>
</html>
"""
