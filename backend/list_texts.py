"""Utility script to list all stored texts and their structure."""
import asyncio
import sys
from typing import Optional

from textstore.services.qdrant_backend import QdrantBackend
from textstore.services.text_store import TextStore


def format_structure(document_id: str, structure: list, index: int) -> str:
    """Render one stored text as a block of lines."""
    lines = [f"\n{index}. Text ID: {document_id}"]
    if not structure:
        lines.append("   (no structure entries)")
    for entry in structure:
        indent = "   " + "  " * entry.get("depth", 0)
        name = entry.get("name", "")
        description = entry.get("description", "")
        line = f"{indent}- {name} [{entry.get('type', '?')}] at {entry.get('start', 0)}"
        if description:
            line += f": {description}"
        lines.append(line)
    return "\n".join(lines)


async def list_texts(store: TextStore) -> int:
    """
    Print every stored text.

    Args:
        store: Text store to read from

    Returns:
        Number of texts found
    """
    structures = await store.get_text_structures()

    if not structures:
        print("No texts found in the database.")
        print("\nImport one using:")
        print("   POST http://localhost:8000/api/texts")
        return 0

    print(f"\nFound {len(structures)} text(s):")
    print("=" * 80)
    for idx, item in enumerate(structures, 1):
        print(format_structure(item.document_id, item.structure, idx))
        print("-" * 80)

    print(f"\nTotal: {len(structures)} text(s)")
    return len(structures)


async def main(host: str, port: int, path: Optional[str], index_name: str) -> None:
    backend = QdrantBackend(host=host, port=port, path=path)
    try:
        await list_texts(TextStore(backend, index_name=index_name))
    finally:
        await backend.close()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="List all texts in the store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python list_texts.py
  python list_texts.py --path ./qdrant_db
  python list_texts.py --host search.internal --port 6333
        """
    )
    parser.add_argument("--host", default="localhost", help="Backend host (default: localhost)")
    parser.add_argument("--port", type=int, default=6333, help="Backend port (default: 6333)")
    parser.add_argument("--path", default=None, help="Embedded Qdrant directory, overrides host/port")
    parser.add_argument("--index", default="textus", help="Index name (default: textus)")

    args = parser.parse_args()

    try:
        asyncio.run(main(args.host, args.port, args.path, args.index))
    except Exception as e:
        print(f"Error accessing the store: {str(e)}")
        sys.exit(1)
