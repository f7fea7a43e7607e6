import argparse
import asyncio

import uvicorn
from rich.console import Console

from pdf_chat.utils.config_loader import load_config
from pdf_chat.src.vector_store.faiss_store import FaissVectorClient
from pdf_chat.utils.model_loader import ModelLoader

console = Console()


def provision(config: dict) -> None:
    """Create the vector index once, before the service is started."""
    index_cfg = config["vector_index"]
    embeddings = ModelLoader(config=config).load_embeddings()
    client = FaissVectorClient(index_cfg["root_dir"], embeddings)

    if index_cfg["name"] in asyncio.run(client.list_indexes()):
        console.print(f"[yellow]Index '{index_cfg['name']}' already exists, nothing to do.[/yellow]")
        return

    client.create_index(index_cfg["name"], index_cfg["dimension"])
    console.print(
        f"[green]Index '{index_cfg['name']}' created[/green] (dimension={index_cfg['dimension']})"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with PDF backend")
    parser.add_argument("command", choices=["provision", "serve"])
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    config = load_config()

    if args.command == "provision":
        provision(config)
        return

    console.print(f"[bold cyan]Starting API on {args.host}:{args.port}[/bold cyan]")
    uvicorn.run("api.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
