# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Compilation stages
# text level:
# stage 0: read the root file and inline include directives
# stage 1: split the text into sections of key/value entries
# config level:
# stage 2: declare layers from section headers; ids, aliases and global sections
# stage 3: compile every binding into descriptors, macros and commands
# stage 4: freeze the builder into an immutable Config snapshot
