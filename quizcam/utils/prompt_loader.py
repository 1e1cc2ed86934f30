import os

PROMPTS_DIR = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), '..', 'prompts'
)


def load_prompt(prompt_file_name: str) -> str:
    """Read a prompt template (.txt) from quizcam/prompts. Placeholders look like {name}."""
    prompt_path = os.path.join(PROMPTS_DIR, prompt_file_name)

    if not os.path.exists(prompt_path):
        raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

    with open(prompt_path, "r", encoding="utf-8") as f:
        return f.read()
