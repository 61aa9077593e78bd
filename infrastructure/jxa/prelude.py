"""JXA helpers shared by every Things script.

Defined once and injected into each script so the JSON shape of a to-do,
project or area has a single source of truth. Every optional Things
property is read through `prop`, which yields null instead of throwing.
Helpers see `things`, `params` and `warnings` from the enclosing envelope.
"""

PRELUDE = r"""
    function prop(obj, name) {
      try {
        const accessor = obj[name];
        if (typeof accessor !== 'function') {
          return null;
        }
        const value = accessor();
        return value === undefined ? null : value;
      } catch (e) {
        return null;
      }
    }

    function propDate(obj, name) {
      const value = prop(obj, name);
      return value ? value.toISOString() : null;
    }

    function tagList(obj) {
      const raw = prop(obj, 'tagNames');
      if (!raw) {
        return [];
      }
      if (Array.isArray(raw)) {
        return raw;
      }
      return String(raw).split(',').map(tag => tag.trim()).filter(tag => tag.length > 0);
    }

    function ref(obj, name) {
      const target = prop(obj, name);
      if (!target) {
        return null;
      }
      const id = prop(target, 'id');
      return id === null ? null : { id: id, name: prop(target, 'name') };
    }

    function countOf(obj, name) {
      try {
        return obj[name]().length;
      } catch (e) {
        return 0;
      }
    }

    function findById(collection, id) {
      try {
        const item = collection.byId(id);
        return item.id() ? item : null;
      } catch (e) {
        return null;
      }
    }

    function findByName(collection, name) {
      try {
        const matches = collection.whose({ name: name })();
        return matches.length > 0 ? matches[0] : null;
      } catch (e) {
        return null;
      }
    }

    function listToDos(listId) {
      try {
        return things.lists.byId(listId).toDos();
      } catch (e) {
        return [];
      }
    }

    function parseDay(dateString) {
      const parts = dateString.split('-').map(Number);
      return new Date(parts[0], parts[1] - 1, parts[2]);
    }

    // The activation date is read-only; scheduling goes through the schedule command.
    function scheduleItem(item, dateString) {
      if (!dateString) {
        return;
      }
      try {
        things.schedule(item, { for: parseDay(dateString) });
      } catch (e) {
        warnings.push('Could not schedule for ' + dateString + ': ' + (e.message || e));
      }
    }

    function setDeadline(item, dateString) {
      try {
        item.dueDate = parseDay(dateString);
      } catch (e) {
        warnings.push('Could not set deadline ' + dateString + ': ' + (e.message || e));
      }
    }

    function applyTags(item, tags) {
      try {
        item.tagNames = tags.join(', ');
      } catch (e) {
        warnings.push('Could not set tags: ' + (e.message || e));
      }
    }

    function appendChecklist(item, lines) {
      if (!lines || lines.length === 0) {
        return;
      }
      const checklist = lines.map(line => '- [ ] ' + line).join('\n');
      const current = prop(item, 'notes') || '';
      item.notes = current + (current ? '\n\n' : '') + checklist;
    }

    // Unresolvable targets leave the item where it is.
    function assignLocation(item, allowProject) {
      let target = null;
      let relation = null;
      let label = null;
      if (allowProject && params.list_id) {
        target = findById(things.projects, params.list_id);
        relation = 'project';
        label = 'project ' + params.list_id;
      } else if (allowProject && params.list_title) {
        target = findByName(things.projects, params.list_title);
        relation = 'project';
        label = 'project ' + params.list_title;
      } else if (params.area_id) {
        target = findById(things.areas, params.area_id);
        relation = 'area';
        label = 'area ' + params.area_id;
      } else if (params.area_title) {
        target = findByName(things.areas, params.area_title);
        relation = 'area';
        label = 'area ' + params.area_title;
      } else {
        return;
      }
      if (!target) {
        warnings.push(label + ' not found; item left in place');
        return;
      }
      try {
        item[relation] = target;
      } catch (e) {
        warnings.push('Could not move to ' + label + ': ' + (e.message || e));
      }
    }

    function textMatches(item, query, withNotes) {
      const name = String(prop(item, 'name') || '').toLowerCase();
      if (name.indexOf(query) !== -1) {
        return true;
      }
      if (!withNotes) {
        return false;
      }
      return String(prop(item, 'notes') || '').toLowerCase().indexOf(query) !== -1;
    }

    function mapTodo(todo, withContainers) {
      return {
        id: prop(todo, 'id'),
        name: prop(todo, 'name'),
        notes: prop(todo, 'notes') || '',
        status: prop(todo, 'status'),
        when: propDate(todo, 'activationDate'),
        deadline: propDate(todo, 'dueDate'),
        tags: tagList(todo),
        project: withContainers ? ref(todo, 'project') : null,
        area: withContainers ? ref(todo, 'area') : null,
        creationDate: propDate(todo, 'creationDate'),
        modificationDate: propDate(todo, 'modificationDate'),
        completionDate: propDate(todo, 'completionDate')
      };
    }

    function mapProject(project) {
      return {
        id: prop(project, 'id'),
        name: prop(project, 'name'),
        notes: prop(project, 'notes') || '',
        status: prop(project, 'status'),
        when: propDate(project, 'activationDate'),
        deadline: propDate(project, 'dueDate'),
        tags: tagList(project),
        area: ref(project, 'area'),
        creationDate: propDate(project, 'creationDate'),
        modificationDate: propDate(project, 'modificationDate'),
        completionDate: propDate(project, 'completionDate')
      };
    }

    function mapArea(area) {
      return {
        id: prop(area, 'id'),
        name: prop(area, 'name'),
        tags: tagList(area)
      };
    }

    function mapSummary(item, type) {
      const summary = { type: type, id: prop(item, 'id'), name: prop(item, 'name') };
      if (type !== 'area') {
        summary.status = prop(item, 'status');
      }
      return summary;
    }

    function ok(data) {
      const out = { success: true, data: data };
      if (warnings.length > 0) {
        out.warnings = warnings;
      }
      return JSON.stringify(out);
    }

    function notFound(label) {
      return JSON.stringify({
        success: false,
        error: { type: 'NotFound', message: label + ' not found', code: -1 }
      });
    }
"""

__all__ = ["PRELUDE"]
