"""Fragment engine — named, independently updatable blocks inside generated files.

Each fragment is delimited by a pair of marker comments written in the
target file's own comment syntax:

    // SCAFFOLD:FRAGMENT:START routes
    app.use('/users', users);
    // SCAFFOLD:FRAGMENT:END routes

The engine owns only the lines between a marker pair. Anything outside
the markers belongs to the operator and is preserved untouched.
"""

# Marker tokens recognised by the scanner and emitted by the merge engine
FRAGMENT_START = "SCAFFOLD:FRAGMENT:START"
FRAGMENT_END = "SCAFFOLD:FRAGMENT:END"
