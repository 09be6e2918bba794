"""Presenter and viewer pages served to browsers.

Both pages talk to ``/ws`` with ``{event, data, id}`` frames and handle all
media through the browser's own WebRTC stack.
"""
from __future__ import annotations

import json

SIGNALING_CLIENT_JS = """
        function openChannel(onEvent) {
            const scheme = window.location.protocol === 'https:' ? 'wss' : 'ws';
            const ws = new WebSocket(`${scheme}://${window.location.host}/ws`);
            const pending = new Map();
            let nextId = 1;
            let resolveReady;
            const ready = new Promise((resolve) => { resolveReady = resolve; });

            ws.onmessage = (message) => {
                const frame = JSON.parse(message.data);
                if (frame.event === 'connected') {
                    resolveReady(frame.data.connectionId);
                    return;
                }
                if (frame.event === 'ack') {
                    const entry = pending.get(frame.id);
                    if (!entry) return;
                    pending.delete(frame.id);
                    if (frame.data.ok === false) {
                        entry.reject(new Error(frame.data.error || 'Request failed.'));
                    } else {
                        entry.resolve(frame.data);
                    }
                    return;
                }
                onEvent(frame.event, frame.data || {});
            };
            ws.onclose = () => onEvent('channel-closed', {});

            function emitWithAck(event, data) {
                return ready.then(() => new Promise((resolve, reject) => {
                    const id = nextId++;
                    pending.set(id, { resolve, reject });
                    ws.send(JSON.stringify({ event, data, id }));
                }));
            }

            return { ready, emitWithAck };
        }
"""

_HEAD = """<!DOCTYPE html>
<html lang=\"en\">
<head>
    <meta charset=\"UTF-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\" />
    <title>__TITLE__</title>
    <script src=\"https://cdn.tailwindcss.com\"></script>
</head>
"""

ADMIN_PAGE = _HEAD + """<body class=\"min-h-screen bg-slate-950 text-slate-100\">
    <main class=\"mx-auto max-w-4xl px-6 py-8 space-y-6\">
        <div class=\"flex items-center justify-between\">
            <h1 class=\"text-xl font-semibold\">Live Session</h1>
            <div class=\"flex gap-3\">
                <button id=\"startBtn\" class=\"rounded-full bg-emerald-500 px-4 py-2 text-sm font-semibold text-black\">Start Session</button>
                <button id=\"stopBtn\" class=\"rounded-full border border-rose-400/60 px-4 py-2 text-sm text-rose-300\" disabled>End Session</button>
            </div>
        </div>
        <p id=\"status\" class=\"text-sm text-slate-400\">Start a session to go live.</p>
        <div id=\"shareCard\" class=\"hidden rounded-xl border border-slate-800 bg-slate-900/60 p-4\">
            <p class=\"text-sm text-slate-400\">Share this link with viewers</p>
            <input id=\"shareUrl\" class=\"mt-2 w-full rounded bg-slate-950 px-3 py-2 text-sm\" readonly />
        </div>
        <video id=\"localVideo\" class=\"w-full rounded-xl bg-black\" autoplay muted playsinline></video>
        <ul id=\"participants\" class=\"space-y-1 text-sm text-slate-400\"></ul>
    </main>
    <script>
        const ICE_CONFIG = { iceServers: __ICE_SERVERS__ };
__SIGNALING_CLIENT__
        const statusEl = document.getElementById('status');
        const startBtn = document.getElementById('startBtn');
        const stopBtn = document.getElementById('stopBtn');
        const participantsEl = document.getElementById('participants');
        const peers = {};
        let localStream = null;
        let sessionId = null;
        const channel = openChannel(handleEvent);

        function setStatus(text) { statusEl.textContent = text; }

        function renderParticipants() {
            participantsEl.innerHTML = '';
            Object.keys(peers).forEach((id) => {
                const item = document.createElement('li');
                item.textContent = `Viewer ${id.slice(0, 8)}: ${peers[id].connectionState}`;
                participantsEl.appendChild(item);
            });
        }

        function teardownPeer(id) {
            const pc = peers[id];
            if (!pc) return;
            pc.close();
            delete peers[id];
            renderParticipants();
        }

        async function offerTo(viewerId) {
            const pc = new RTCPeerConnection(ICE_CONFIG);
            peers[viewerId] = pc;
            localStream.getTracks().forEach((track) => pc.addTrack(track, localStream));
            pc.onicecandidate = (event) => {
                if (event.candidate) {
                    channel.emitWithAck('ice-candidate', { to: viewerId, candidate: event.candidate }).catch(console.error);
                }
            };
            pc.onconnectionstatechange = renderParticipants;
            const offer = await pc.createOffer();
            await pc.setLocalDescription(offer);
            await channel.emitWithAck('offer', { to: viewerId, sdp: pc.localDescription });
            renderParticipants();
        }

        function resetSession(message) {
            Object.keys(peers).forEach(teardownPeer);
            if (localStream) {
                localStream.getTracks().forEach((track) => track.stop());
                localStream = null;
            }
            sessionId = null;
            startBtn.disabled = false;
            stopBtn.disabled = true;
            setStatus(message);
        }

        function handleEvent(event, data) {
            if (event === 'participant-joined') {
                offerTo(data.connectionId).catch((error) => {
                    console.error(error);
                    teardownPeer(data.connectionId);
                });
            } else if (event === 'participant-left') {
                teardownPeer(data.connectionId);
            } else if (event === 'answer') {
                const pc = peers[data.from];
                if (pc) pc.setRemoteDescription(new RTCSessionDescription(data.sdp)).catch(console.error);
            } else if (event === 'ice-candidate') {
                const pc = peers[data.from];
                if (pc && data.candidate) pc.addIceCandidate(new RTCIceCandidate(data.candidate)).catch(console.error);
            } else if (event === 'session-ended') {
                resetSession('Session ended.');
            } else if (event === 'channel-closed') {
                resetSession('Connection to the server was lost.');
            }
        }

        startBtn.addEventListener('click', async () => {
            startBtn.disabled = true;
            try {
                localStream = await navigator.mediaDevices.getUserMedia({ video: true, audio: true });
                document.getElementById('localVideo').srcObject = localStream;
                const response = await fetch('/api/session', { method: 'POST' });
                if (!response.ok) throw new Error('Unable to create session, please try again.');
                const session = await response.json();
                sessionId = session.id;
                document.getElementById('shareUrl').value = session.url;
                document.getElementById('shareCard').classList.remove('hidden');
                const ack = await channel.emitWithAck('presenter-join', { sessionId });
                ack.participants.forEach((id) => offerTo(id).catch(console.error));
                stopBtn.disabled = false;
                setStatus('Live. Waiting for viewers.');
            } catch (error) {
                console.error(error);
                resetSession(error.message);
            }
        });

        stopBtn.addEventListener('click', async () => {
            if (!sessionId) return;
            try {
                await channel.emitWithAck('end-session', { sessionId });
                resetSession('Session ended.');
            } catch (error) {
                setStatus(error.message);
            }
        });
    </script>
</body>
</html>
"""

VIEWER_PAGE = _HEAD + """<body class=\"min-h-screen bg-slate-950 text-slate-100\">
    <main class=\"mx-auto max-w-4xl px-6 py-8 space-y-4\">
        <h1 class=\"text-xl font-semibold\">Live Session</h1>
        <p id=\"status\" class=\"text-sm text-slate-400\">Connecting…</p>
        <video id=\"remoteVideo\" class=\"w-full rounded-xl bg-black\" autoplay playsinline controls></video>
    </main>
    <script>
        const ICE_CONFIG = { iceServers: __ICE_SERVERS__ };
        const SESSION_ID = __SESSION_ID__;
__SIGNALING_CLIENT__
        const statusEl = document.getElementById('status');
        const pc = new RTCPeerConnection(ICE_CONFIG);
        let presenterId = null;
        const channel = openChannel(handleEvent);

        function setStatus(text) { statusEl.textContent = text; }

        pc.ontrack = (event) => {
            document.getElementById('remoteVideo').srcObject = event.streams[0];
            setStatus('Watching live.');
        };
        pc.onicecandidate = (event) => {
            if (!event.candidate) return;
            const data = presenterId ? { to: presenterId, candidate: event.candidate } : { candidate: event.candidate };
            channel.emitWithAck('ice-candidate', data).catch(console.error);
        };

        async function handleOffer(data) {
            presenterId = data.from;
            await pc.setRemoteDescription(new RTCSessionDescription(data.sdp));
            const answer = await pc.createAnswer();
            await pc.setLocalDescription(answer);
            await channel.emitWithAck('answer', { to: presenterId, sdp: pc.localDescription });
        }

        function handleEvent(event, data) {
            if (event === 'offer') {
                handleOffer(data).catch((error) => {
                    console.error(error);
                    setStatus('Could not connect to the presenter.');
                });
            } else if (event === 'ice-candidate') {
                if (data.candidate) pc.addIceCandidate(new RTCIceCandidate(data.candidate)).catch(console.error);
            } else if (event === 'session-ended') {
                pc.close();
                setStatus('The presenter ended the session.');
            } else if (event === 'channel-closed') {
                setStatus('Connection to the server was lost.');
            }
        }

        channel.emitWithAck('viewer-join', { sessionId: SESSION_ID })
            .then((ack) => {
                presenterId = ack.presenterId || null;
                setStatus('Waiting for the presenter to start streaming.');
            })
            .catch((error) => setStatus(error.message));
    </script>
</body>
</html>
"""


def _render(template: str, title: str, ice_servers: list[str], **values: str) -> str:
    page = template.replace("__SIGNALING_CLIENT__", SIGNALING_CLIENT_JS)
    page = page.replace("__TITLE__", title)
    page = page.replace("__ICE_SERVERS__", json.dumps([{"urls": url} for url in ice_servers]))
    for key, value in values.items():
        page = page.replace(f"__{key.upper()}__", value)
    return page


def render_admin_page(ice_servers: list[str]) -> str:
    return _render(ADMIN_PAGE, "Live Session · Presenter", ice_servers)


def render_viewer_page(session_id: str, ice_servers: list[str]) -> str:
    # json.dumps gives a quoted JS string literal; escape "<" so it cannot close the script tag.
    literal = json.dumps(session_id).replace("<", "\\u003c")
    return _render(VIEWER_PAGE, "Live Session", ice_servers, session_id=literal)
