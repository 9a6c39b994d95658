from importlib import resources


def get_prompt(name: str, **kwargs) -> str:
    """
    Load a text prompt from the lander.resources package.

    With kwargs, str.format(**kwargs) is applied so templates can carry
    placeholders like {project_id}. Substituted values are inserted as-is, so a
    document full of CSS braces is safe to pass in.
    """
    data = resources.files("lander.resources").joinpath(name).read_text(encoding="utf-8")
    if kwargs:
        return data.format(**kwargs)
    return data
