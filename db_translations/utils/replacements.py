def make_replacements(line, replacements=None):
    """Substitute ``:name`` placeholders in ``line``.

    ``:Name`` and ``:NAME`` receive the capitalized and upper-cased value.
    Longer placeholder names are replaced first so ``:username`` is not
    clobbered by ``:user``.
    """
    if not replacements or line is None:
        return line

    for name in sorted(replacements, key=len, reverse=True):
        value = '' if replacements[name] is None else str(replacements[name])
        line = line.replace(f":{name.upper()}", value.upper())
        line = line.replace(f":{name[:1].upper()}{name[1:]}", value[:1].upper() + value[1:])
        line = line.replace(f":{name}", value)

    return line
