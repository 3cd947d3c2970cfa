from __future__ import annotations

# ruff: noqa: E501
import html
import json


def render_board_html(room_id: str) -> str:
    """
    Minimal board client (single page app).

    Kept in a separate module so `app.py` stays focused on transport/room logic.
    """
    title = html.escape(room_id)
    room_js = json.dumps(room_id).replace("</", "<\\/")
    return f"""
<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>sketchroom: {title}</title>
    <style>
      html, body {{ height: 100%; margin: 0; background: #ffffff; font-family: ui-sans-serif, system-ui, -apple-system; overflow: hidden; }}
      #bar {{ position: fixed; top: 10px; left: 50%; transform: translateX(-50%); display: flex; gap: 10px; align-items: center; padding: 8px 12px; background: rgba(255,255,255,0.9); border: 1px solid #ddd; border-radius: 10px; z-index: 2; }}
      #status {{ font-size: 12px; color: #666; }}
      canvas {{ position: absolute; inset: 0; cursor: crosshair; }}
      .cursor {{ position: absolute; pointer-events: none; font-size: 11px; color: #fff; background: #3b82f6; padding: 1px 5px; border-radius: 6px; transform: translate(8px, 8px); z-index: 1; }}
    </style>
  </head>
  <body>
    <div id="bar">
      <strong>{title}</strong>
      <input id="color" type="color" value="#000000" />
      <input id="width" type="range" min="1" max="40" value="5" />
      <input id="name" type="text" placeholder="Your name" size="10" />
      <button id="clear">Clear</button>
      <span id="status">connecting…</span>
    </div>
    <canvas id="board"></canvas>
    <script>
      const roomId = {room_js};
      const statusEl = document.getElementById("status");
      const canvas = document.getElementById("board");
      const ctx = canvas.getContext("2d");
      const colorEl = document.getElementById("color");
      const widthEl = document.getElementById("width");
      const nameEl = document.getElementById("name");
      const cursors = new Map(); // userId -> element

      function resize() {{
        canvas.width = window.innerWidth;
        canvas.height = window.innerHeight;
        // resizing wipes the canvas; ask for the history again
        if (ws && ws.readyState === WebSocket.OPEN) send("join-board", roomId);
      }}

      function drawLine(s) {{
        ctx.beginPath();
        ctx.moveTo(s.x1, s.y1);
        ctx.lineTo(s.x2, s.y2);
        ctx.strokeStyle = s.color;
        ctx.lineWidth = s.width;
        ctx.lineCap = "round";
        ctx.stroke();
        ctx.closePath();
      }}

      function showCursor(c) {{
        let el = cursors.get(c.userId);
        if (!el) {{
          el = document.createElement("div");
          el.className = "cursor";
          document.body.appendChild(el);
          cursors.set(c.userId, el);
        }}
        el.textContent = c.name;
        el.style.left = c.x + "px";
        el.style.top = c.y + "px";
      }}

      function dropCursor(userId) {{
        const el = cursors.get(userId);
        if (el) {{ el.remove(); cursors.delete(userId); }}
      }}

      function wsUrl() {{
        const proto = (location.protocol === "https:") ? "wss" : "ws";
        return `${{proto}}://${{location.host}}/ws`;
      }}

      let ws;
      function send(t, data) {{
        if (ws && ws.readyState === WebSocket.OPEN) ws.send(JSON.stringify({{ t, data }}));
      }}

      function connect() {{
        statusEl.textContent = "connecting…";
        ws = new WebSocket(wsUrl());
        ws.onopen = () => {{
          statusEl.textContent = "connected";
          send("join-board", roomId);
        }};
        ws.onclose = () => {{
          statusEl.textContent = "disconnected; retrying…";
          setTimeout(connect, 500);
        }};
        ws.onmessage = (ev) => {{
          let msg;
          try {{ msg = JSON.parse(ev.data); }} catch {{ return; }}
          const t = msg.t;
          if (t === "load-history") {{
            ctx.clearRect(0, 0, canvas.width, canvas.height);
            (msg.data || []).forEach(drawLine);
          }} else if (t === "draw-stroke") {{
            drawLine(msg.data);
          }} else if (t === "clear-board") {{
            ctx.clearRect(0, 0, canvas.width, canvas.height);
          }} else if (t === "cursor-move") {{
            showCursor(msg.data);
          }} else if (t === "user-left") {{
            dropCursor(msg.data.userId);
          }} else if (t === "error") {{
            console.warn("server rejected frame", msg.data);
          }}
        }};
      }}

      let drawing = false;
      let lastX = 0, lastY = 0, lastEmit = 0;
      canvas.addEventListener("mousedown", (e) => {{
        drawing = true;
        lastX = e.clientX;
        lastY = e.clientY;
      }});
      canvas.addEventListener("mousemove", (e) => {{
        const now = Date.now();
        if (now - lastEmit > 30) {{
          lastEmit = now;
          send("cursor-move", {{ roomId, cursorData: {{ x: e.clientX, y: e.clientY, name: nameEl.value || "Guest" }} }});
        }}
        if (!drawing) return;
        const s = {{ x1: lastX, y1: lastY, x2: e.clientX, y2: e.clientY, color: colorEl.value, width: Number(widthEl.value) }};
        drawLine(s);
        send("draw-stroke", {{ roomId, strokeData: s }});
        lastX = e.clientX;
        lastY = e.clientY;
      }});
      for (const ev of ["mouseup", "mouseleave"]) canvas.addEventListener(ev, () => {{ drawing = false; }});
      document.getElementById("clear").addEventListener("click", () => send("clear-board", roomId));

      window.addEventListener("resize", resize);
      resize();
      connect();
    </script>
  </body>
</html>
"""
