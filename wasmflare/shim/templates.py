"""JavaScript blocks concatenated into the deployable worker script.

Symbol contract between blocks (nothing checks it at generation time):

  host runtime (block 1)  defines  ``Go`` (the wasm_exec.js runtime class)
  runtime adapter (block 2) defines ``loadModule``, ``createRuntimeContext`` and
                            imports ``connect`` and the compiled module ``mod``
  dispatch (block 3)       uses    ``Go``, ``loadModule``, ``createRuntimeContext``
                            and exports ``fetch``, ``scheduled``, ``queue``,
                            ``onRequest``

The compiled module signals readiness by calling ``workers.ready()`` once its
exported bindings are installed on ``ctx.binding``.
"""

from __future__ import annotations


HOST_RUNTIME_SYMBOLS = ("Go",)
ADAPTER_SYMBOLS = ("loadModule", "createRuntimeContext")
ENTRY_POINTS = ("fetch", "scheduled", "queue", "onRequest")
BINDING_METHODS = ("handleRequest", "runScheduler", "handleQueueMessageBatch")


RUNTIME_ADAPTER_TEMPLATE = """// Runtime functions - inline version
import {{ connect }} from "cloudflare:sockets";
import mod from "{wasm_file_name}";

async function loadModule() {{
  return mod;
}}

function createRuntimeContext({{ env, ctx, binding }}) {{
  return {{
    env,
    ctx,
    connect,
    binding,
  }};
}}"""


# States: Unloaded (loading === undefined) -> Loading (promise pending) -> Ready
# (promise resolved). The promise is assigned synchronously before the first
# await, so concurrent first invocations in one isolate share a single load.
DISPATCH_TEMPLATE = """// Worker logic
let loading;

function loadModuleOnce() {
  if (loading === undefined) {
    loading = loadModule().catch((err) => {
      loading = undefined;
      throw err;
    });
  }
  return loading;
}

globalThis.tryCatch = (fn) => {
  try {
    return {
      result: fn(),
    };
  } catch (e) {
    return {
      error: e,
    };
  }
};

async function run(ctx) {
  const compiled = await loadModuleOnce();
  const go = new Go();

  let ready;
  const readyPromise = new Promise((resolve) => {
    ready = resolve;
  });
  const instance = new WebAssembly.Instance(compiled, {
    ...go.importObject,
    workers: {
      ready: () => {
        ready();
      },
    },
  });
  go.run(instance, ctx);
  await readyPromise;
}

async function fetch(req, env, ctx) {
  const binding = {};
  await run(createRuntimeContext({ env, ctx, binding }));
  return binding.handleRequest(req);
}

async function scheduled(event, env, ctx) {
  const binding = {};
  await run(createRuntimeContext({ env, ctx, binding }));
  return binding.runScheduler(event);
}

async function queue(batch, env, ctx) {
  const binding = {};
  await run(createRuntimeContext({ env, ctx, binding }));
  return binding.handleQueueMessageBatch(batch);
}

// onRequest handles request to Cloudflare Pages
async function onRequest(ctx) {
  const binding = {};
  const { request, env } = ctx;
  await run(createRuntimeContext({ env, ctx, binding }));
  return binding.handleRequest(request);
}

export default {
  fetch,
  scheduled,
  queue,
  onRequest,
};"""


def runtime_adapter(wasm_file_name: str) -> str:
    """Block 2: bind the module import, sockets ``connect`` and the env/ctx/binding triple."""
    return RUNTIME_ADAPTER_TEMPLATE.format(wasm_file_name=wasm_file_name)


def dispatch_template() -> str:
    return DISPATCH_TEMPLATE
