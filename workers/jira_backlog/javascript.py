"""
Jira Backlog JavaScript Snippets
================================
Code evaluated in the backlog page by ``PageHost``.

The snippets stay primitive: they read the raw list structure or perform one
mutation. Which sections count, how items are deduplicated and when to scroll
are decided in Python. Every snippet takes a single argument object ``a``
carrying the selectors (``container``, ``sectionAttr``, ``cardListAttr``,
``injectedAttr``) plus call-specific fields.
"""

# ── Shared: locate a section's list node ─────────────────────────────
# Backlog section layout:
#   <div data-testid=SECTION>
#     ...
#     <div>                       <- last DIV child
#       <x/>
#       <div data-test-id=...>    <- card list (childNodes[1])
#         <div>                   <- list node holding absolutely positioned cards
_FIND_LIST = r'''
    const findList = (a, sectionId) => {
        const root = document.querySelector(a.container);
        if (!root) return null;
        for (const node of root.children) {
            if (node.getAttribute(a.sectionAttr) !== sectionId) continue;
            const lastDiv = Array.from(node.children).findLast(x => x.nodeName === 'DIV');
            const cardList = lastDiv ? lastDiv.childNodes[1] : undefined;
            if (!cardList || !cardList.firstChild) return null;
            return cardList.firstChild;
        }
        return null;
    };
    const findCard = (list, a, top, injected) => {
        for (const el of list.children) {
            if (el.nodeName !== 'DIV') continue;
            if (el.style.top !== top) continue;
            if (el.hasAttribute(a.injectedAttr) !== injected) continue;
            return el;
        }
        return null;
    };
'''

# ── Read the container's children ────────────────────────────────────
READ_TREE_JS = r'''(a) => {
    const root = document.querySelector(a.container);
    if (!root) return null;
    const out = [];
    for (const node of root.children) {
        const entry = {
            sectionId: node.getAttribute(a.sectionAttr),
            hasItemHost: false,
            cardListMarker: null,
            hasList: false,
            listMarker: null,
            items: []
        };
        out.push(entry);
        const lastDiv = Array.from(node.children).findLast(x => x.nodeName === 'DIV');
        if (!lastDiv) continue;
        entry.hasItemHost = true;

        const cardList = lastDiv.childNodes[1];
        if (!cardList || cardList.nodeType !== 1) continue;
        entry.cardListMarker = cardList.getAttribute(a.cardListAttr);

        const list = cardList.firstChild;
        if (!list || list.nodeType !== 1) continue;
        entry.hasList = true;
        entry.listMarker = list.getAttribute(a.cardListAttr);

        for (const el of list.children) {
            if (el.nodeName !== 'DIV') continue;
            const item = {
                top: el.style.top,
                content: el.innerHTML,
                injected: el.hasAttribute(a.injectedAttr)
            };
            if (a.withMarkup) item.markup = el.outerHTML;
            entry.items.push(item);
        }
    }
    return out;
}'''

# ── Scrolling ────────────────────────────────────────────────────────
SCROLL_METRICS_JS = r'''(a) => {
    const root = document.querySelector(a.container);
    if (!root) return null;
    return {top: root.scrollTop, clientHeight: root.clientHeight,
            scrollHeight: root.scrollHeight};
}'''

SEEK_JS = r'''(a) => {
    const root = document.querySelector(a.container);
    if (!root) return null;
    root.scroll({top: a.top, behavior: 'instant'});
    return root.scrollTop;
}'''

SCROLL_INTO_VIEW_JS = '(a) => {' + _FIND_LIST + r'''
    const list = findList(a, a.sectionId);
    if (!list) return false;
    const card = findCard(list, a, a.top, a.injected);
    if (!card) return false;
    card.scrollIntoView();
    return true;
}'''

# ── Injected copies ──────────────────────────────────────────────────
APPEND_ITEMS_JS = '(a) => {' + _FIND_LIST + r'''
    const list = findList(a, a.sectionId);
    if (!list) return -1;
    let count = 0;
    for (const markup of a.markups) {
        const tpl = document.createElement('template');
        tpl.innerHTML = markup.trim();
        const el = tpl.content.firstElementChild;
        if (!el) continue;
        el.setAttribute(a.injectedAttr, '');
        el.setAttribute('aria-hidden', 'true');
        el.inert = true;
        el.style.zIndex = a.zIndex;
        el.style.pointerEvents = 'none';
        list.appendChild(el);
        count++;
    }
    return count;
}'''

REMOVE_INJECTED_JS = '(a) => {' + _FIND_LIST + r'''
    const list = findList(a, a.sectionId);
    if (!list) return 0;
    const copies = Array.from(list.children).filter(el => el.hasAttribute(a.injectedAttr));
    copies.forEach(el => el.remove());
    return copies.length;
}'''

SET_CONTENT_JS = '(a) => {' + _FIND_LIST + r'''
    const list = findList(a, a.sectionId);
    if (!list) return false;
    const card = findCard(list, a, a.top, true);
    if (!card) return false;
    card.innerHTML = a.content;
    return true;
}'''

# ── Key capture ──────────────────────────────────────────────────────
# Only bound keys are intercepted; typing in inputs is left alone and the
# default action (e.g. the browser's find bar) still runs.
INSTALL_KEYS_JS = r'''(a) => {
    window.__unrollKeyQueue = window.__unrollKeyQueue || [];
    window.__unrollBindings = a.bindings;
    if (window.__unrollKeyListener) return false;
    window.__unrollKeyListener = (e) => {
        const t = e.target;
        if (t && (t.isContentEditable || ['INPUT', 'TEXTAREA', 'SELECT'].includes(t.nodeName))) return;
        const held = !!(e.ctrlKey || e.metaKey);
        const bound = window.__unrollBindings.some(b => b.key === e.key && b.modifier === held);
        if (!bound) return;
        e.stopPropagation();
        window.__unrollKeyQueue.push({key: e.key, ctrlKey: e.ctrlKey, metaKey: e.metaKey});
    };
    window.addEventListener('keydown', window.__unrollKeyListener, true);
    return true;
}'''

DRAIN_KEYS_JS = r'''() => {
    if (!window.__unrollKeyListener) return null;
    const events = window.__unrollKeyQueue || [];
    window.__unrollKeyQueue = [];
    return events;
}'''
