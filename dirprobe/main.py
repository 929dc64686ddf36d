import asyncio, os, uuid, traceback, logging
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException

from .models import ScanConfig
from .scanner import DirEnumerator
from .wordlists import WordlistError, build_candidates

# Basic logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("dirprobe.main")

app = FastAPI(title="dirprobe")

JOBS: Dict[str, Dict] = {}

# Jobs may only read wordlists from here
WORDLIST_DIR = Path(os.environ.get("DIRPROBE_WORDLIST_DIR", "wordlists"))


def resolve_wordlist(name: str) -> Path:
    root = WORDLIST_DIR.resolve()
    path = (root / name).resolve()
    if path != root and root not in path.parents:
        raise HTTPException(status_code=400, detail="wordlist must live in the wordlist directory")
    return path


@app.post("/api/enumerate")
async def start_enumeration(req: ScanConfig):
    if req.output is not None:
        raise HTTPException(status_code=400, detail="output files are not written by the API")
    req = req.model_copy(update={"wordlist": str(resolve_wordlist(req.wordlist))})

    job_id = str(uuid.uuid4())
    q: asyncio.Queue = asyncio.Queue()
    cancel = asyncio.Event()
    JOBS[job_id] = {"queue": q, "cancel": cancel}

    async def emit(ev):
        # also mirror to server logs for visibility
        if ev.get("type") == "stage":
            log.info("Stage: %s %s", ev.get("stage"), {k: v for k, v in ev.items() if k not in ("type", "stage")})
        elif ev.get("type") == "found":
            item = ev.get("item", {})
            log.info("Found: %s %s", item.get("status"), item.get("candidate"))
        elif ev.get("type") == "error" and req.verbose:
            log.warning("Probe error: %s %s", ev.get("candidate"), ev.get("message"))
        await q.put(ev)

    async def run():
        try:
            await emit({"type": "stage", "stage": "building_candidates"})
            try:
                candidates = await asyncio.to_thread(build_candidates, req.wordlist, req.extensions)
            except WordlistError as e:
                await emit({"type": "error", "message": str(e)})
                return
            await emit({"type": "stage", "stage": "candidates_ready", "count": len(candidates)})

            enumerator = DirEnumerator(req)
            await emit({"type": "stage", "stage": "enumeration_started"})
            result = await enumerator.run(candidates, emit, cancel)

            kind = "canceled" if result.cancelled else "done"
            await emit({"type": kind, "result": result.model_dump(mode="json")})
            log.info("Enumeration %s: processed=%d/%d, found=%d",
                     kind, result.processed, result.total, len(result.outcomes))

        except asyncio.CancelledError:
            await q.put({"type": "canceled"})
            raise
        except Exception:
            await emit({"type": "error", "message": traceback.format_exc()})
        finally:
            await q.put(None)

    JOBS[job_id]["task"] = asyncio.create_task(run())
    return {"job_id": job_id}


async def _until_disconnect(ws: WebSocket):
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass


@app.websocket("/ws/{job_id}")
async def ws_progress(ws: WebSocket, job_id: str):
    await ws.accept()
    if job_id not in JOBS:
        await ws.send_json({"type": "error", "message": "unknown job"})
        await ws.close()
        return
    q: asyncio.Queue = JOBS[job_id]["queue"]
    gone = asyncio.create_task(_until_disconnect(ws))
    try:
        while True:
            nxt = asyncio.create_task(q.get())
            await asyncio.wait({nxt, gone}, return_when=asyncio.FIRST_COMPLETED)
            if gone.done():
                nxt.cancel()
                break
            ev = nxt.result()
            if ev is None:
                gone.cancel()
                await ws.close()
                break
            await ws.send_json(ev)
    except WebSocketDisconnect:
        pass
    finally:
        gone.cancel()
        # nobody is listening any more: stop the run instead of orphaning it
        job = JOBS.pop(job_id, None)
        if job:
            job["cancel"].set()


@app.delete("/api/enumerate/{job_id}")
async def cancel(job_id: str):
    job = JOBS.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="unknown job")
    # cooperative: workers stop and the partial result is still delivered
    job["cancel"].set()
    return {"status": "canceling"}
