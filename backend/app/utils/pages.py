"""HTML pages for the web delivery of notes.

The reveal page never contains note content. Content is fetched by the
page's script from ``POST /note/{id}/reveal`` only after the recipient
clicks the button, so link-preview crawlers that fetch the URL cannot
consume the note. The decryption key stays in the URL fragment and the
browser decrypts with WebCrypto. A page opened without a key never offers
the reveal.
"""

from __future__ import annotations

import json
from html import escape
from string import Template

_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta name="robots" content="noindex, nofollow">
  <title>$title - DestructNote</title>
  <style>
    body { margin: 0; min-height: 100vh; display: flex; align-items: center;
           justify-content: center; font-family: system-ui, sans-serif;
           background: $accent; }
    .card { background: #fff; border: 4px solid #000; box-shadow: 8px 8px 0 #000;
            max-width: 560px; width: 90%; padding: 32px; }
    h1 { margin-top: 0; }
    .subtitle { color: #333; }
    .button { font-size: 1.1rem; font-weight: bold; padding: 14px 24px;
              border: 3px solid #000; background: #FFE500; cursor: pointer; }
    .note-content { white-space: pre-wrap; word-break: break-word; }
    .error { color: #c00; }
  </style>
</head>
<body>
  <main class="card">
$body
  </main>
$script
</body>
</html>
""")

_REVEAL_SCRIPT = Template("""  <script>
    (function () {
      var noteId = $note_id;
      var key = window.location.hash.slice(1);
      var button = document.getElementById('reveal-btn');
      var section = document.getElementById('reveal-section');
      var box = document.getElementById('note-box');
      var output = document.getElementById('note-content');
      var error = document.getElementById('reveal-error');
      var keyError = document.getElementById('key-error');

      // Without the key the content is unreadable; never spend the note
      if (!key) {
        section.style.display = 'none';
        keyError.textContent = 'Missing decryption key in URL';
        keyError.style.display = 'block';
        return;
      }

      function fromBase64(text) {
        var binary = atob(text);
        var bytes = new Uint8Array(binary.length);
        for (var i = 0; i < binary.length; i++) bytes[i] = binary.charCodeAt(i);
        return bytes;
      }

      // Payload is base64(nonce[12] || ciphertext), AES-CTR with a 16-byte counter block
      async function decryptContent(payload, keyText) {
        var combined = fromBase64(payload);
        var counter = new Uint8Array(16);
        counter.set(combined.slice(0, 12));
        var cryptoKey = await crypto.subtle.importKey(
          'raw', fromBase64(keyText), { name: 'AES-CTR' }, false, ['decrypt']
        );
        var plain = await crypto.subtle.decrypt(
          { name: 'AES-CTR', counter: counter, length: 32 }, cryptoKey, combined.slice(12)
        );
        return new TextDecoder().decode(plain);
      }

      button.addEventListener('click', async function () {
        button.disabled = true;
        button.textContent = 'Revealing...';
        var data;
        try {
          var resp = await fetch('/note/' + encodeURIComponent(noteId) + '/reveal', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' }
          });
          data = await resp.json();
          if (!resp.ok) {
            throw new Error(data.error || 'Failed to reveal note');
          }
        } catch (err) {
          error.textContent = err.message;
          button.disabled = false;
          button.textContent = 'Reveal Secret Note';
          return;
        }

        section.style.display = 'none';
        box.style.display = 'block';
        try {
          output.textContent = await decryptContent(data.content, key);
        } catch (err) {
          // The note is already spent; there is nothing to retry
          output.textContent = '';
          keyError.textContent = 'Could not decrypt this note. The key in the URL may be wrong.';
          keyError.style.display = 'block';
        }
      });
    })();
  </script>""")


def _render(title: str, body: str, accent: str, script: str = "") -> str:
    return _PAGE.substitute(title=escape(title), body=body, accent=accent, script=script)


def render_reveal_page(note_id: str) -> str:
    body = """    <h1>Secret Note</h1>
    <p class="subtitle">This note will self-destruct after you read it!</p>
    <div id="reveal-section">
      <p>Someone sent you a secret note. Once you reveal it, the note will be
      permanently destroyed and cannot be viewed again.</p>
      <button id="reveal-btn" class="button">Reveal Secret Note</button>
      <p id="reveal-error" class="error"></p>
    </div>
    <p id="key-error" class="error" style="display:none;"></p>
    <div id="note-box" style="display:none;">
      <p id="note-content" class="note-content"></p>
      <p class="subtitle">This note has been destroyed.</p>
    </div>"""
    # json.dumps yields a JS string literal; escape "</" so it cannot close the tag
    note_id_js = json.dumps(note_id).replace("</", "<\\/")
    return _render(
        "Secret Note", body, "#00FF85", _REVEAL_SCRIPT.substitute(note_id=note_id_js)
    )


def render_not_found_page() -> str:
    body = """    <h1>Note Not Found</h1>
    <p class="subtitle">This note does not exist or the link is invalid.</p>"""
    return _render("Note Not Found", body, "#FF6B6B")


def render_destroyed_page() -> str:
    body = """    <h1>Note Destroyed</h1>
    <p class="subtitle">This note has already been read and has self-destructed.</p>"""
    return _render("Note Destroyed", body, "#B8B8B8")


def render_error_page() -> str:
    body = """    <h1>Something Went Wrong</h1>
    <p class="subtitle">Failed to load this note. Please try again later.</p>"""
    return _render("Error", body, "#FF6B6B")
