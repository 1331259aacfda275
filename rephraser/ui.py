#!/usr/bin/env python3
# Rephrase Form: browser page and the state model behind it
from typing import Optional
from loguru import logger
import httpx

from rephraser.classes import FormState


EMPTY_INPUT_ERROR = "Please enter some text to rephrase"
FAILURE_ERROR = "Failed to rephrase text"
GENERIC_ERROR = "An error occurred"


class RephraseForm:
    """
    Client-side model of the rephrase form.

    Holds the four pieces of form state (input, result, error, loading) and
    submits the trimmed input to the rephrase endpoint. While a request is
    outstanding the submit control is disabled and `submit` does nothing.

    Mirrors `handleRephrase` in the INDEX_HTML page script; the browser runs
    the script, this class drives the same flow from Python.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str = "/api/rephrase"):
        self.client = client
        self.endpoint = endpoint
        self.input = ""
        self.result = ""
        self.error = ""
        self.is_loading = False

    @property
    def submit_disabled(self) -> bool:
        return self.is_loading

    @property
    def button_label(self) -> str:
        return "Rephrasing..." if self.is_loading else "Rephrase Text"

    @property
    def state(self) -> FormState:
        if self.is_loading:
            return FormState.LOADING
        if self.error:
            return FormState.ERROR
        if self.result:
            return FormState.SUCCESS
        return FormState.IDLE

    async def submit(self) -> None:
        if self.submit_disabled:
            return

        text = self.input.strip()
        if not text:
            self.error = EMPTY_INPUT_ERROR
            return

        try:
            self.error = ""
            self.is_loading = True
            response = await self.client.post(self.endpoint, json={"text": text})
            data = response.json()
            if response.is_error:
                self.error = _error_from_body(data) or FAILURE_ERROR
                return
            self.result = data["rephrased"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Rephrase request failed: {e!r}")
            self.error = GENERIC_ERROR
        finally:
            self.is_loading = False


def _error_from_body(data) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return None


INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Text Rephraser</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 0; }
    main { max-width: 42rem; margin: 0 auto; padding: 1.5rem; }
    textarea { width: 100%; height: 9rem; padding: .75rem; box-sizing: border-box;
               border: 1px solid #d1d5db; border-radius: .5rem; }
    button { margin-top: 1rem; padding: .5rem 1rem; color: #fff; background: #3b82f6;
             border: 0; border-radius: .5rem; cursor: pointer; }
    button:hover { background: #2563eb; }
    button:disabled { background: #9ca3af; cursor: not-allowed; }
    .error { margin-top: 1rem; padding: .75rem; color: #ef4444; background: #fef2f2;
             border-radius: .5rem; }
    .result { margin-top: 1rem; padding: 1rem; border: 1px solid #e5e7eb;
              background: #f9fafb; border-radius: .5rem; }
    [hidden] { display: none; }
  </style>
</head>
<body>
  <main>
    <h1>Text Rephraser</h1>
    <textarea id="input" placeholder="Enter text to rephrase..."></textarea>
    <button id="submit" type="button">Rephrase Text</button>
    <div id="error" class="error" hidden></div>
    <div id="result" class="result" hidden>
      <h2>Rephrased Text:</h2>
      <p id="result-text"></p>
    </div>
  </main>
  <script>
    const state = { input: "", result: "", error: "", isLoading: false };
    const el = (id) => document.getElementById(id);

    function render() {
      el("submit").disabled = state.isLoading;
      el("submit").textContent = state.isLoading ? "Rephrasing..." : "Rephrase Text";
      el("error").hidden = !state.error;
      el("error").textContent = state.error;
      el("result").hidden = !state.result;
      el("result-text").textContent = state.result;
    }

    async function handleRephrase() {
      if (state.isLoading) return;
      const text = el("input").value.trim();
      if (!text) {
        state.error = "Please enter some text to rephrase";
        render();
        return;
      }
      try {
        state.error = "";
        state.isLoading = true;
        render();
        const response = await fetch("/api/rephrase", {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: JSON.stringify({ text }),
        });
        const data = await response.json();
        if (!response.ok) {
          throw new Error(data.error || "Failed to rephrase text");
        }
        state.result = data.rephrased;
      } catch (err) {
        state.error = err instanceof Error ? err.message : "An error occurred";
      } finally {
        state.isLoading = false;
        render();
      }
    }

    el("input").addEventListener("input", (e) => { state.input = e.target.value; });
    el("submit").addEventListener("click", handleRephrase);
    render();
  </script>
</body>
</html>
"""
